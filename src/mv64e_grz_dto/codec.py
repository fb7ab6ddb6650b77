"""
Conversion between JSON text and validated GRZ metadata records.
"""

import json
import logging
import math
from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from .errors import SchemaViolation, Violation
from .metadata import Metadata
from .settings import CodecSettings

log = logging.getLogger(__name__)

_DEFAULT_SETTINGS = CodecSettings.model_construct()


class _NonFiniteNumber(str):
    """Literal of a number without a finite value, e.g. NaN, -Infinity or 1e400."""


class _JsonObject(dict):
    def __init__(self, pairs: list[tuple[str, Any]]):
        super().__init__(pairs)
        seen: set[str] = set()
        self.duplicate_keys: list[str] = []
        for key, _ in pairs:
            if key in seen and key not in self.duplicate_keys:
                self.duplicate_keys.append(key)
            seen.add(key)


def _parse_float(literal: str) -> float | _NonFiniteNumber:
    value = float(literal)
    return value if math.isfinite(value) else _NonFiniteNumber(literal)


def _iter_non_strict_json(node: Any, location: tuple[str | int, ...] = ()) -> Iterator[Violation]:
    """
    Find what the pydantic JSON parser tolerates but RFC 8259 JSON does not: duplicate object keys and
    numbers without a finite value.
    """
    if isinstance(node, _NonFiniteNumber):
        yield Violation(
            location=".".join(str(part) for part in location),
            kind="json_invalid",
            message=f"Invalid JSON: number '{node}' is not finite",
        )
    elif isinstance(node, _JsonObject):
        for key in node.duplicate_keys:
            yield Violation(
                location=".".join(str(part) for part in (*location, key)),
                kind="duplicate_key",
                message=f"Duplicate key '{key}'",
            )
        for key, value in node.items():
            yield from _iter_non_strict_json(value, (*location, key))
    elif isinstance(node, list):
        for index, item in enumerate(node):
            yield from _iter_non_strict_json(item, (*location, index))


def _check_strict_json(text: str | bytes | bytearray) -> list[Violation]:
    try:
        document = json.loads(
            text,
            object_pairs_hook=_JsonObject,
            parse_float=_parse_float,
            parse_constant=_NonFiniteNumber,
        )
    except (TypeError, ValueError, RecursionError):
        # syntax errors are reported by pydantic along with everything else
        return []
    return list(_iter_non_strict_json(document))


def _reject(violation: SchemaViolation) -> SchemaViolation:
    log.error("Rejected metadata document with %d schema violation(s).", len(violation.violations))
    return violation


def decode(text: str | bytes | bytearray) -> Metadata:
    """
    Parse and validate a metadata document.

    :param text: JSON text, as str or UTF-8 encoded bytes
    :return: The validated metadata record tree
    :raises SchemaViolation: if the text is not well-formed JSON or does not conform to the schema
    """
    if violations := _check_strict_json(text):
        raise _reject(SchemaViolation(violations))

    try:
        metadata = Metadata.model_validate_json(text)
    except ValidationError as err:
        raise _reject(SchemaViolation.from_validation_error(err)) from err

    log.debug("Decoded metadata with %d donor(s).", len(metadata.donors))
    return metadata


def encode(metadata: Metadata, settings: CodecSettings | None = None) -> str:
    """
    Render a metadata record tree as JSON text.

    Optional fields without a value are omitted rather than written as null.

    :param metadata: The metadata to render
    :param settings: Rendering options; compact output if not given
    :return: JSON text that decodes back to an equal record tree
    """
    if settings is None:
        settings = _DEFAULT_SETTINGS

    text = metadata.model_dump_json(by_alias=True, indent=settings.indent)
    log.debug("Encoded metadata with %d donor(s) into %d characters.", len(metadata.donors), len(text))
    return text


def json_schema() -> dict[str, Any]:
    """JSON Schema of the metadata document, using wire field names."""
    return Metadata.model_json_schema(by_alias=True)
