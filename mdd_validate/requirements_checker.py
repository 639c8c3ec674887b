"""
Requirements Checker - per document type frontmatter and directive rules.

Looks up the requirement rule for the document's type and reports missing
required fields and directives. Recommended fields and directives are
informational and never reported.
"""

import logging

from .diagnostics import DiagnosticCollector, ErrorCode, Location
from .extractors import DocumentFacts
from .rule_tables import RuleTables

logger = logging.getLogger(__name__)


class RequirementsChecker(DiagnosticCollector):
    """
    Validates document-type specific requirements.

    A document without a document-type, or with a type that has no rule,
    produces nothing here; the frontmatter checker already reports those.
    """

    def __init__(self, tables: RuleTables):
        super().__init__()
        self.tables = tables

    def check(self, facts: DocumentFacts) -> "RequirementsChecker":
        self.reset()

        document_type = facts.frontmatter.get("document-type", "")
        if not document_type:
            return self

        requirement = self.tables.requirement_for(document_type)
        if requirement is None:
            logger.debug("No requirement rule for document type %r", document_type)
            return self

        for name in requirement.required_fields:
            if not facts.frontmatter.get(name, "").strip():
                self.report(
                    ErrorCode.MISSING_REQUIRED_FIELD,
                    f"Document type '{document_type}' requires frontmatter field: {name}",
                    Location(field=name),
                    f'Add "{name}: <value>" to the frontmatter',
                )

        present = {directive.type for directive in facts.directives.occurrences}
        for name in requirement.required_directives:
            if name not in present:
                self.report(
                    ErrorCode.MISSING_REQUIRED_DIRECTIVE,
                    f"Document type '{document_type}' requires a ::{name} directive",
                    Location(directive=name),
                    f'Add a ::{name} block, closed by a line containing only "::"',
                )

        return self
