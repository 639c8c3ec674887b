"""
Directive Checker - structural rules for ::directive blocks.

Consumes the DirectiveScan produced by the extractor state machine and
reports unclosed directives, nesting violations, stray end markers, empty
blocks, duplicated singleton directives and ordering problems.
"""

from typing import Dict, List

from .diagnostics import DiagnosticCollector, ErrorCode, Location
from .extractors import DirectiveOccurrence, DocumentFacts
from .rule_tables import RuleTables


class DirectiveChecker(DiagnosticCollector):
    """
    Validates directive structure.

    Errors: MISSING_END_MARKER, INVALID_DIRECTIVE_NESTING, ORPHANED_END_MARKER.
    Warnings: EMPTY_DIRECTIVE, DUPLICATE_DIRECTIVE, INVALID_DIRECTIVE_ORDER.
    """

    def __init__(self, tables: RuleTables):
        super().__init__()
        self.tables = tables

    def check(self, facts: DocumentFacts) -> "DirectiveChecker":
        self.reset()
        scan = facts.directives

        for directive in scan.occurrences:
            self._check_pairing(directive)

        for line in scan.orphaned_end_lines:
            self.report(
                ErrorCode.ORPHANED_END_MARKER,
                f'End marker "::" at line {line} does not close any directive',
                Location(line=line),
                "Remove the stray marker or add the opening ::directive line it belongs to",
            )

        for directive in scan.occurrences:
            self._check_empty(directive)

        self._check_duplicates(scan.occurrences)
        self._check_order(scan.occurrences)

        return self

    def _check_pairing(self, directive: DirectiveOccurrence) -> None:
        if directive.nested_in is not None:
            self.report(
                ErrorCode.INVALID_DIRECTIVE_NESTING,
                f"Directive ::{directive.type} is opened inside ::{directive.nested_in}; directives cannot be nested",
                Location(line=directive.line, directive=directive.type),
                f'Close ::{directive.nested_in} with a "::" line before opening ::{directive.type}',
            )

        if not directive.has_end_marker:
            self.report(
                ErrorCode.MISSING_END_MARKER,
                f"Directive ::{directive.type} opened at line {directive.line} is never closed",
                Location(line=directive.line, directive=directive.type),
                'Add a line containing only "::" after the directive content',
            )

    def _check_empty(self, directive: DirectiveOccurrence) -> None:
        if directive.self_closing or not directive.has_end_marker:
            return
        if directive.content == "":
            self.report(
                ErrorCode.EMPTY_DIRECTIVE,
                f"Directive ::{directive.type} has no content",
                Location(line=directive.line, directive=directive.type),
                f"Add content to ::{directive.type} or remove the empty block",
            )

    def _check_duplicates(self, directives) -> None:
        seen: Dict[str, List[DirectiveOccurrence]] = {}
        for directive in directives:
            if directive.type in self.tables.singleton_directives:
                seen.setdefault(directive.type, []).append(directive)

        for directive_type, occurrences in seen.items():
            if len(occurrences) < 2:
                continue
            lines = ", ".join(str(occ.line) for occ in occurrences)
            self.report(
                ErrorCode.DUPLICATE_DIRECTIVE,
                f"Directive ::{directive_type} appears {len(occurrences)} times (lines {lines}); only one is allowed",
                Location(line=occurrences[1].line, directive=directive_type),
                f"Keep a single ::{directive_type} block",
            )

    def _check_order(self, directives) -> None:
        first_line: Dict[str, int] = {}
        for directive in directives:
            first_line.setdefault(directive.type, directive.line)

        for before, after in self.tables.directive_order:
            if before not in first_line or after not in first_line:
                continue
            if first_line[after] < first_line[before]:
                self.report(
                    ErrorCode.INVALID_DIRECTIVE_ORDER,
                    f"Directive ::{after} (line {first_line[after]}) appears before ::{before} (line {first_line[before]})",
                    Location(line=first_line[after], directive=after),
                    f"Move ::{before} above ::{after}",
                )
