"""
Validation Orchestrator

Runs the extractors once, then the enabled rule groups in a fixed order
(frontmatter, directives, requirements, classes), and folds their
diagnostics into a ValidationResult.

Validation is pure: no I/O happens here once the rule tables are loaded,
and any document text produces a result rather than an exception.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union

from .class_checker import ClassChecker
from .diagnostics import ValidationResult
from .directive_checker import DirectiveChecker
from .extractors import count_directives, extract_facts
from .frontmatter_checker import FrontmatterChecker
from .requirements_checker import RequirementsChecker
from .rule_tables import RuleTables, load_rule_tables

logger = logging.getLogger(__name__)

# camelCase flag names accepted alongside the field names
_OPTION_ALIASES = {
    "validateFrontmatterFlag": "validate_frontmatter",
    "validateDirectivesFlag": "validate_directives",
    "validateRequirementsFlag": "validate_requirements",
    "validateClassesFlag": "validate_classes",
}


@dataclass(frozen=True)
class ValidationOptions:
    """
    Per-run validation switches.

    Attributes:
        validate_frontmatter: Include frontmatter schema diagnostics
        validate_directives: Include directive structure diagnostics
        validate_requirements: Include document-type requirement diagnostics
        validate_classes: Include semantic class diagnostics
        strict: Treat warnings as failures when computing ``valid``
    """
    validate_frontmatter: bool = True
    validate_directives: bool = True
    validate_requirements: bool = True
    validate_classes: bool = True
    strict: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ValidationOptions":
        """
        Build options from a dict, accepting snake_case or camelCase flag names.

        Example:
            >>> ValidationOptions.from_mapping({"validateClassesFlag": False, "strict": True})
            ValidationOptions(validate_frontmatter=True, validate_directives=True, validate_requirements=True, validate_classes=False, strict=True)
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in known:
                values[name] = bool(value)
        return cls(**values)


OptionsLike = Union[ValidationOptions, Mapping[str, Any], None]


def _coerce_options(options: OptionsLike) -> ValidationOptions:
    if options is None:
        return ValidationOptions()
    if isinstance(options, ValidationOptions):
        return options
    return ValidationOptions.from_mapping(options)


def validate_document(
    content: str,
    options: OptionsLike = None,
    tables: Optional[RuleTables] = None,
) -> ValidationResult:
    """
    Validate one MDD document.

    Args:
        content: Raw document text
        options: ValidationOptions or a mapping of flag names
        tables: Rule tables to validate against (default: packaged rules)

    Returns:
        ValidationResult with errors, warnings and the extracted facts

    Example:
        >>> result = validate_document("# Just a heading")
        >>> result.valid
        False
        >>> result.errors[0].code.value
        'MISSING_FRONTMATTER'
    """
    opts = _coerce_options(options)
    if tables is None:
        tables = load_rule_tables()

    facts = extract_facts(content)

    checkers = [
        (opts.validate_frontmatter, FrontmatterChecker(tables)),
        (opts.validate_directives, DirectiveChecker(tables)),
        (opts.validate_requirements, RequirementsChecker(tables)),
        (opts.validate_classes, ClassChecker(tables)),
    ]

    errors = []
    warnings = []
    for enabled, checker in checkers:
        if not enabled:
            continue
        checker.check(facts)
        errors.extend(checker.errors)
        warnings.extend(checker.warnings)
        logger.debug(
            "%s: %d errors, %d warnings",
            type(checker).__name__,
            len(checker.errors),
            len(checker.warnings),
        )

    valid = not errors and (not opts.strict or not warnings)

    return ValidationResult(
        valid=valid,
        errors=tuple(errors),
        warnings=tuple(warnings),
        frontmatter=dict(facts.frontmatter),
        directives=facts.directives.occurrences,
        directive_counts=count_directives(facts.directives.occurrences),
    )
