"""
Semantic Class Checker - whitelist membership for {.class} annotations.
"""

import difflib

from .diagnostics import DiagnosticCollector, ErrorCode, Location
from .extractors import DocumentFacts
from .rule_tables import RuleTables


class ClassChecker(DiagnosticCollector):
    """Reports malformed and unknown semantic classes. Warnings only."""

    def __init__(self, tables: RuleTables):
        super().__init__()
        self.tables = tables

    def check(self, facts: DocumentFacts) -> "ClassChecker":
        self.reset()
        known = sorted(self.tables.semantic_classes)

        for annotation in facts.classes:
            location = Location(line=annotation.line, column=annotation.column)

            if annotation.error is not None:
                self.report(
                    ErrorCode.INVALID_SEMANTIC_CLASS,
                    f'Malformed semantic class "{annotation.name}" at line {annotation.line}: {annotation.error}',
                    location,
                    "Write classes as {.class-name}, with a closing brace",
                )
                continue

            if annotation.name in self.tables.semantic_classes:
                continue

            close = difflib.get_close_matches(annotation.name, known, n=1)
            if close:
                suggestion = f'Did you mean "{close[0]}"?'
            else:
                suggestion = "Use one of the supported semantic classes or remove the annotation"

            self.report(
                ErrorCode.UNKNOWN_SEMANTIC_CLASS,
                f'Unknown semantic class "{annotation.name}" at line {annotation.line}',
                location,
                suggestion,
            )

        return self
