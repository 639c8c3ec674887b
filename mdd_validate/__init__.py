"""Validation engine and command-line tools for MDD business documents."""

__version__ = "0.1.0"

from .diagnostics import Diagnostic, ErrorCode, Location, Severity, ValidationResult
from .extractors import extract_class_annotations, extract_directives, extract_frontmatter
from .rule_tables import RuleTableError, RuleTables, load_rule_tables
from .validator import ValidationOptions, validate_document

__all__ = [
    "Diagnostic",
    "ErrorCode",
    "Location",
    "RuleTableError",
    "RuleTables",
    "Severity",
    "ValidationOptions",
    "ValidationResult",
    "extract_class_annotations",
    "extract_directives",
    "extract_frontmatter",
    "load_rule_tables",
    "validate_document",
]
