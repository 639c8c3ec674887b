"""
Frontmatter Checker - schema rules for document metadata.

Every applicable rule runs regardless of earlier failures, in a fixed order,
and each failing rule adds exactly one error with a suggestion. This checker
never emits warnings.
"""

import difflib
import re
from datetime import date
from typing import Dict, List, Optional

from .diagnostics import DiagnosticCollector, ErrorCode, Location
from .extractors import DocumentFacts
from .rule_tables import RuleTables

REQUIRED_FIELDS = ("title", "document-type")
DATE_FIELDS = ("date", "effective-date", "expiration-date", "due-date")
MAX_TITLE_LENGTH = 200

DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$', re.ASCII)
VERSION_RE = re.compile(r'^\d+\.\d+(\.\d+)?$', re.ASCII)
LANGUAGE_RE = re.compile(r'^[a-z]{2}(-[A-Z]{2})?$')

# ISO 4217 code followed by an amount in either grouping convention:
# 1,234.56 (comma thousands, dot decimal) or 1.234,56 (dot thousands, comma decimal)
CURRENCY_RE = re.compile(
    r'^[A-Z]{3}\s?-?'
    r'(?:'
    r'(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?'
    r'|'
    r'(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d{1,2})?'
    r')$',
    re.ASCII,
)


def is_valid_date(value: str) -> bool:
    """
    Check a YYYY-MM-DD string for shape and calendar validity.

    Example:
        >>> is_valid_date("2024-02-29")
        True
        >>> is_valid_date("2023-02-29")
        False
        >>> is_valid_date("December 15, 2024")
        False
    """
    match = DATE_RE.match(value)
    if not match:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


class FrontmatterChecker(DiagnosticCollector):
    """
    Validates the frontmatter mapping against the metadata schema.

    Executes rules in order:
    1. block presence
    2. required fields
    3. title length
    4. document-type enum
    5. date fields
    6. version
    7. status
    8. language
    9. total-amount
    """

    def __init__(self, tables: RuleTables):
        super().__init__()
        self.tables = tables

    def check(self, facts: DocumentFacts) -> "FrontmatterChecker":
        self.reset()
        fm = facts.frontmatter
        lines = facts.field_lines

        if not facts.has_frontmatter:
            self.report(
                ErrorCode.MISSING_FRONTMATTER,
                "Document has no frontmatter block",
                Location(line=1),
                'Start the document with a "---" line, the metadata fields, and a closing "---" line',
            )

        self._check_required_fields(fm)

        if "title" in fm:
            self._check_title_length(fm["title"], lines.get("title"))
        if fm.get("document-type"):
            self._check_document_type(fm["document-type"], lines.get("document-type"))

        for date_field in DATE_FIELDS:
            if date_field in fm:
                self._check_date(date_field, fm[date_field], lines.get(date_field))

        if "version" in fm:
            self._check_version(fm["version"], lines.get("version"))
        if "status" in fm:
            self._check_status(fm["status"], lines.get("status"))
        if "language" in fm:
            self._check_language(fm["language"], lines.get("language"))
        if "total-amount" in fm:
            self._check_currency(fm["total-amount"], lines.get("total-amount"))

        return self

    def _check_required_fields(self, fm: Dict[str, str]) -> None:
        for name in REQUIRED_FIELDS:
            if not fm.get(name, "").strip():
                self.report(
                    ErrorCode.MISSING_REQUIRED_FIELD,
                    f"Missing required frontmatter field: {name}",
                    Location(field=name),
                    f'Add "{name}: <value>" to the frontmatter',
                )

    def _check_title_length(self, title: str, line: Optional[int]) -> None:
        if len(title) > MAX_TITLE_LENGTH:
            self.report(
                ErrorCode.INVALID_FIELD_LENGTH,
                f"Title is {len(title)} characters long (maximum {MAX_TITLE_LENGTH})",
                Location(line=line, field="title"),
                f"Shorten the title to at most {MAX_TITLE_LENGTH} characters",
            )

    def _check_document_type(self, value: str, line: Optional[int]) -> None:
        if value in self.tables.document_types:
            return

        close = difflib.get_close_matches(value, sorted(self.tables.document_types), n=1)
        if close:
            suggestion = f'Did you mean "{close[0]}"?'
        else:
            suggestion = "Use one of the supported document types, e.g. business-letter, invoice, contract"

        self.report(
            ErrorCode.INVALID_DOCUMENT_TYPE,
            f"Invalid document-type: {value}",
            Location(line=line, field="document-type"),
            suggestion,
        )

    def _check_date(self, name: str, value: str, line: Optional[int]) -> None:
        if is_valid_date(value):
            return

        if DATE_RE.match(value):
            detail = "is not a real calendar date"
        else:
            detail = "must use the YYYY-MM-DD format"

        self.report(
            ErrorCode.INVALID_DATE_FORMAT,
            f'Invalid {name} "{value}": {detail}',
            Location(line=line, field=name),
            f"Use an ISO 8601 calendar date such as {name}: 2024-12-15",
        )

    def _check_version(self, value: str, line: Optional[int]) -> None:
        if not VERSION_RE.match(value):
            self.report(
                ErrorCode.INVALID_VERSION_FORMAT,
                f'Invalid version "{value}"',
                Location(line=line, field="version"),
                "Use MAJOR.MINOR or MAJOR.MINOR.PATCH, e.g. 1.0 or 2.1.3",
            )

    def _check_status(self, value: str, line: Optional[int]) -> None:
        statuses: List[str] = list(self.tables.statuses)
        if value not in statuses:
            self.report(
                ErrorCode.INVALID_STATUS,
                f'Invalid status "{value}"',
                Location(line=line, field="status"),
                f"Use one of: {', '.join(statuses)}",
            )

    def _check_language(self, value: str, line: Optional[int]) -> None:
        if not LANGUAGE_RE.match(value):
            self.report(
                ErrorCode.INVALID_LANGUAGE_CODE,
                f'Invalid language code "{value}"',
                Location(line=line, field="language"),
                "Use an ISO 639-1 code such as en or en-US",
            )

    def _check_currency(self, value: str, line: Optional[int]) -> None:
        if not CURRENCY_RE.match(value):
            self.report(
                ErrorCode.INVALID_CURRENCY_FORMAT,
                f'Invalid total-amount "{value}"',
                Location(line=line, field="total-amount"),
                "Use a 3-letter currency code followed by the amount, e.g. USD 1,234.56 or EUR 1.234,56",
            )
