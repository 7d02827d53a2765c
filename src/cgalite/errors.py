"""
cgalite exceptions.

Error code ranges:
- S1xx: Schema errors (malformed rule programs)
- G2xx: Footprint / geometry context errors
- O3xx: Operation errors raised while folding rules
- I4xx: Input errors (files, command line)
"""

from enum import Enum
from typing import Optional


class CgaError(Exception):
    """Base exception for cgalite errors."""

    code = "E000"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class SchemaIssue(Enum):
    """Kind of structural violation found by the schema validator."""
    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    INVALID_ENUM = "invalid_enum"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    INVALID_UNION = "invalid_union"
    UNRECOGNIZED_KEY = "unrecognized_key"


class SchemaError(CgaError):
    """A rule program failed structural validation (S100)."""

    code = "S100"

    def __init__(self, path: str, message: str, issue: SchemaIssue):
        self.path = path
        self.issue = issue
        super().__init__(message)

    def __str__(self) -> str:
        where = self.path or "<program>"
        return f"[{self.code}] {where}: {self.message}"


class GeometryError(CgaError):
    """The footprint cannot be used for rule application (G200)."""

    code = "G200"


class OperationError(CgaError):
    """A rule failed its runtime precondition (O300)."""

    code = "O300"

    def __init__(self, message: str, index: Optional[int] = None, op: Optional[str] = None):
        self.index = index
        self.op = op
        super().__init__(message)

    def located(self) -> str:
        """Message prefixed with the failing rule position, when known."""
        if self.index is None:
            return self.message
        return f"Rule {self.index} ({self.op}) failed: {self.message}"


class UnknownOperationError(OperationError):
    """The dispatcher met a rule tag it has no handler for (O301)."""

    code = "O301"


class InputError(CgaError):
    """A program, footprint or config file could not be read (I400)."""

    code = "I400"
