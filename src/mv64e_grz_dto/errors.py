from typing import NamedTuple, Self

from pydantic import ValidationError


class Violation(NamedTuple):
    """A single conformance failure found while decoding a document."""

    location: str
    """Dotted wire path of the offending value, e.g. 'donors.0.gender'; empty for the document itself."""

    kind: str
    """Pydantic error type, e.g. 'extra_forbidden', 'missing', 'enum' or 'json_invalid'."""

    message: str

    def __str__(self) -> str:
        return f"{self.location or '<document>'}: {self.message} [{self.kind}]"


class SchemaViolation(ValueError):
    """Exception for documents that do not conform to the GRZ metadata schema."""

    def __init__(self, violations: tuple[Violation, ...] | list[Violation]):
        self.violations = tuple(violations)
        plural = "" if len(self.violations) == 1 else "s"
        details = "\n".join(f"  - {violation}" for violation in self.violations)
        self.message = (
            f"Metadata does not conform to the schema ({len(self.violations)} violation{plural}):\n{details}"
        )
        super().__init__(self.message)

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> Self:
        return cls(
            [
                Violation(
                    location=".".join(str(part) for part in e["loc"]),
                    kind=e["type"],
                    message=e["msg"],
                )
                for e in error.errors(include_url=False)
            ]
        )
