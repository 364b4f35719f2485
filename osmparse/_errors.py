"""Define custom errors and exceptions."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._osm_xml import ElementType


class ErrorReason(Enum):
    """Why an element or attribute could not be parsed."""

    MISSING_ATTRIBUTE = "missing attribute"
    UNPARSABLE_FLOAT = "unparsable float"
    UNPARSABLE_INT = "unparsable int"
    ILLEGAL_NESTING = "illegal nesting"
    MALFORMED_MEMBER = "malformed member"


class AttributeLookupError(ValueError):
    """Exception for a missing or unparsable XML attribute."""

    def __init__(self, name: str, reason: ErrorReason, value: str | None = None) -> None:
        self.name = name
        self.reason = reason
        self.value = value
        if value is None:
            msg = f"Attribute {name!r}: {reason.value}"
        else:
            msg = f"Attribute {name!r}: {reason.value} {value!r}"
        super().__init__(msg)


class DocumentError(ValueError):
    """Base exception for a problem parsing an OSM XML document."""


class TokenizerError(DocumentError):
    """Exception for malformed XML syntax or an unreadable byte stream."""


class BoundsInvalidError(DocumentError):
    """Exception for a bounds element missing or mangling a coordinate."""

    def __init__(self, reason: ErrorReason) -> None:
        self.reason = reason
        msg = f"Invalid bounds: {reason.value}"
        super().__init__(msg)


class ElementMalformedError(DocumentError):
    """Exception for a tag, node, way, or relation that cannot be built."""

    def __init__(self, kind: ElementType, reason: ErrorReason, detail: str = "") -> None:
        self.kind = kind
        self.reason = reason
        msg = f"Malformed {kind.value}: {reason.value}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class UnknownElementError(DocumentError):
    """Exception for an element name that is not valid where it appears."""

    def __init__(self, name: str) -> None:
        self.name = name
        msg = f"Unknown element {name!r}"
        super().__init__(msg)
