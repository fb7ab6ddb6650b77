"""Strictly-typed DTOs for GRZ submission metadata."""

from .codec import decode, encode, json_schema
from .errors import SchemaViolation, Violation
from .metadata import *  # noqa: F403
from .settings import CodecSettings

__version__ = "0.1.0"
