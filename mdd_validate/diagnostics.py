"""
Diagnostic Model

Shared value types for everything the validator reports.

Key Features:
- Closed ErrorCode enum; each code carries a fixed severity
- Frozen Diagnostic records with optional location and suggestion
- DiagnosticCollector base class used by every rule checker
- ValidationResult aggregate consumed by the CLI and the preview renderer
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Severity(str, Enum):
    """Diagnostic severity. Warnings only block validity in strict mode."""

    ERROR = "error"
    WARNING = "warning"


class ErrorCode(str, Enum):
    """Stable identifiers for every diagnostic the tool can emit."""

    # Frontmatter
    MISSING_FRONTMATTER = "MISSING_FRONTMATTER"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FIELD_LENGTH = "INVALID_FIELD_LENGTH"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_DOCUMENT_TYPE = "INVALID_DOCUMENT_TYPE"
    INVALID_VERSION_FORMAT = "INVALID_VERSION_FORMAT"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_LANGUAGE_CODE = "INVALID_LANGUAGE_CODE"
    INVALID_CURRENCY_FORMAT = "INVALID_CURRENCY_FORMAT"

    # Directives
    MISSING_END_MARKER = "MISSING_END_MARKER"
    INVALID_DIRECTIVE_NESTING = "INVALID_DIRECTIVE_NESTING"
    MISSING_REQUIRED_DIRECTIVE = "MISSING_REQUIRED_DIRECTIVE"
    ORPHANED_END_MARKER = "ORPHANED_END_MARKER"
    EMPTY_DIRECTIVE = "EMPTY_DIRECTIVE"
    DUPLICATE_DIRECTIVE = "DUPLICATE_DIRECTIVE"

    # Text formatting (emitted by the rendering plugins, not by the validator)
    INVALID_REFERENCE = "INVALID_REFERENCE"
    OVERLAPPING_FORMATTING = "OVERLAPPING_FORMATTING"
    MALFORMED_PATTERN = "MALFORMED_PATTERN"

    # Semantic classes
    INVALID_SEMANTIC_CLASS = "INVALID_SEMANTIC_CLASS"
    UNKNOWN_SEMANTIC_CLASS = "UNKNOWN_SEMANTIC_CLASS"

    # Structure
    INVALID_DIRECTIVE_ORDER = "INVALID_DIRECTIVE_ORDER"

    # File-level failures reported by the CLI
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    PROCESSING_ERROR = "PROCESSING_ERROR"

    @property
    def severity(self) -> Severity:
        """Severity is a property of the code, never of an individual diagnostic."""
        if self in WARNING_CODES:
            return Severity.WARNING
        return Severity.ERROR


WARNING_CODES = frozenset({
    ErrorCode.EMPTY_DIRECTIVE,
    ErrorCode.DUPLICATE_DIRECTIVE,
    ErrorCode.INVALID_REFERENCE,
    ErrorCode.OVERLAPPING_FORMATTING,
    ErrorCode.MALFORMED_PATTERN,
    ErrorCode.INVALID_SEMANTIC_CLASS,
    ErrorCode.UNKNOWN_SEMANTIC_CLASS,
    ErrorCode.INVALID_DIRECTIVE_ORDER,
})


@dataclass(frozen=True)
class Location:
    """
    Where a diagnostic applies. Every attribute is optional.

    Attributes:
        line: 1-based line number
        column: 1-based column number
        directive: Directive type the diagnostic refers to
        field: Frontmatter field name the diagnostic refers to
    """
    line: Optional[int] = None
    column: Optional[int] = None
    directive: Optional[str] = None
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize known attributes only."""
        data: Dict[str, Any] = {}
        if self.line is not None:
            data["line"] = self.line
        if self.column is not None:
            data["column"] = self.column
        if self.directive is not None:
            data["directive"] = self.directive
        if self.field is not None:
            data["field"] = self.field
        return data

    def describe(self) -> str:
        """
        Human-readable location suffix.

        Example:
            >>> Location(line=3, directive="letterhead").describe()
            'line 3, directive ::letterhead'
        """
        parts = []
        if self.line is not None:
            parts.append(f"line {self.line}")
        if self.column is not None:
            parts.append(f"col {self.column}")
        if self.directive is not None:
            parts.append(f"directive ::{self.directive}")
        if self.field is not None:
            parts.append(f'field "{self.field}"')
        return ", ".join(parts)


@dataclass(frozen=True)
class Diagnostic:
    """
    A single validation error or warning.

    Attributes:
        code: Stable error code; determines the severity
        message: Human-readable description naming the offending value
        location: Where the problem was found
        suggestion: Optional actionable hint
    """
    code: ErrorCode
    message: str
    location: Location = field(default_factory=Location)
    suggestion: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return self.code.severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.severity.value,
            "code": self.code.value,
            "message": self.message,
            "location": self.location.to_dict(),
            "suggestion": self.suggestion,
        }

    def format_error(self) -> str:
        """
        Format diagnostic for plain console output.

        Returns:
            Formatted multi-line string

        Example:
            [ERROR] MISSING_END_MARKER: Directive ::letterhead is never closed
              Location: line 9, directive ::letterhead
              Suggestion: Add a line containing only "::" after the directive content
        """
        header = f"[{self.severity.value.upper()}] {self.code.value}: {self.message}"

        parts = [header]
        where = self.location.describe()
        if where:
            parts.append(f"  Location: {where}")
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")

        return "\n".join(parts)


class DiagnosticCollector:
    """
    Accumulates diagnostics for one checker run.

    Diagnostics are routed to ``errors`` or ``warnings`` by the severity of
    their code, so a checker cannot file a warning code as an error.
    """

    def __init__(self):
        self.errors: List[Diagnostic] = []
        self.warnings: List[Diagnostic] = []

    def reset(self) -> None:
        self.errors = []
        self.warnings = []

    def report(
        self,
        code: ErrorCode,
        message: str,
        location: Optional[Location] = None,
        suggestion: Optional[str] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            code=code,
            message=message,
            location=location if location is not None else Location(),
            suggestion=suggestion,
        )
        if diagnostic.severity is Severity.WARNING:
            self.warnings.append(diagnostic)
        else:
            self.errors.append(diagnostic)
        return diagnostic


@dataclass(frozen=True)
class ValidationResult:
    """
    Aggregate outcome of validating one document.

    Attributes:
        valid: True when there are no errors (and, in strict mode, no warnings)
        errors: Error diagnostics in discovery order
        warnings: Warning diagnostics in discovery order
        frontmatter: Extracted frontmatter mapping (read-only)
        directives: Extracted directive occurrences
        directive_counts: Directive type to occurrence count (read-only)
    """
    valid: bool
    errors: Tuple[Diagnostic, ...]
    warnings: Tuple[Diagnostic, ...]
    frontmatter: Mapping[str, str]
    directives: Tuple[Any, ...]
    directive_counts: Mapping[str, int]

    def __post_init__(self):
        object.__setattr__(self, "frontmatter", MappingProxyType(dict(self.frontmatter)))
        object.__setattr__(self, "directive_counts", MappingProxyType(dict(self.directive_counts)))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape used by the CLI."""
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "frontmatter": dict(self.frontmatter),
            "directives": [directive.to_dict() for directive in self.directives],
            "directiveCounts": dict(self.directive_counts),
        }


def failed_result(code: ErrorCode, message: str, suggestion: Optional[str] = None) -> ValidationResult:
    """Build a single-error result for failures that happen before validation can run."""
    return ValidationResult(
        valid=False,
        errors=(Diagnostic(code=code, message=message, suggestion=suggestion),),
        warnings=(),
        frontmatter={},
        directives=(),
        directive_counts={},
    )
