"""
Rule Tables - read-only reference data for validation.

Loads the document-type enum, per-type requirements, the semantic class
whitelist and directive policies from a YAML file, validates the file
against a JSON Schema and freezes the result.

Key Features:
- YAML rule file parsed with yaml.safe_load
- Structural validation with jsonschema (Draft 7)
- Cross-reference checks the schema cannot express
- Per-path cache so the packaged tables are parsed once per process
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import yaml
from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "rules.yaml"
RULES_SCHEMA_PATH = Path(__file__).parent / "rules_schema.json"

# Global rule table cache keyed by resolved path
_tables_cache: Dict[Path, "RuleTables"] = {}


class RuleTableError(Exception):
    """Raised when a rule table file is missing, unparsable or inconsistent."""
    pass


@dataclass(frozen=True)
class DocumentRequirement:
    """
    Requirements for one document type.

    Attributes:
        required_fields: Frontmatter fields that must be present and non-empty
        required_directives: Directive types that must occur at least once
        recommended_fields: Informational only, never reported
        recommended_directives: Informational only, never reported
    """
    required_fields: Tuple[str, ...] = ()
    required_directives: Tuple[str, ...] = ()
    recommended_fields: Tuple[str, ...] = ()
    recommended_directives: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleTables:
    """Immutable bundle of every table the checkers consult."""
    document_types: FrozenSet[str]
    statuses: Tuple[str, ...]
    semantic_classes: FrozenSet[str]
    requirements: Mapping[str, DocumentRequirement]
    singleton_directives: FrozenSet[str] = frozenset()
    directive_order: Tuple[Tuple[str, str], ...] = ()
    source: Optional[Path] = field(default=None, compare=False)

    def requirement_for(self, document_type: str) -> Optional[DocumentRequirement]:
        """Exact, case-sensitive lookup. Unknown types have no requirements."""
        return self.requirements.get(document_type)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view, used by --show-effective-rules."""
        return {
            "document_types": sorted(self.document_types),
            "statuses": list(self.statuses),
            "singleton_directives": sorted(self.singleton_directives),
            "directive_order": [list(pair) for pair in self.directive_order],
            "semantic_classes": sorted(self.semantic_classes),
            "requirements": {
                name: {
                    "required_fields": list(req.required_fields),
                    "required_directives": list(req.required_directives),
                    "recommended_fields": list(req.recommended_fields),
                    "recommended_directives": list(req.recommended_directives),
                }
                for name, req in self.requirements.items()
            },
        }


def _load_schema() -> Dict[str, Any]:
    with open(RULES_SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def build_rule_tables(data: Dict[str, Any], source: Optional[Path] = None) -> RuleTables:
    """
    Validate raw rule data and freeze it into RuleTables.

    Args:
        data: Parsed rule file contents
        source: Where the data came from, for error messages

    Returns:
        RuleTables instance

    Raises:
        RuleTableError: If the data violates the schema or references
            document types that are not declared
    """
    origin = source or "<rule data>"

    if not isinstance(data, dict):
        raise RuleTableError(f"Rule table {origin} must be a mapping")

    validator = Draft7Validator(_load_schema())
    problems = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if problems:
        first = problems[0]
        where = "/".join(str(part) for part in first.absolute_path) or "<root>"
        raise RuleTableError(f"Invalid rule table {origin} at {where}: {first.message}")

    document_types = frozenset(data["document_types"])

    # Requirements must refer to declared document types
    undeclared = sorted(set(data["requirements"]) - document_types)
    if undeclared:
        raise RuleTableError(
            f"Invalid rule table {origin}: requirements for undeclared document types: "
            f"{', '.join(undeclared)}"
        )

    requirements = {}
    for name, raw in data["requirements"].items():
        raw = raw or {}
        requirements[name] = DocumentRequirement(
            required_fields=tuple(raw.get("required_fields", [])),
            required_directives=tuple(raw.get("required_directives", [])),
            recommended_fields=tuple(raw.get("recommended_fields", [])),
            recommended_directives=tuple(raw.get("recommended_directives", [])),
        )

    return RuleTables(
        document_types=document_types,
        statuses=tuple(data["statuses"]),
        semantic_classes=frozenset(data["semantic_classes"]),
        requirements=MappingProxyType(requirements),
        singleton_directives=frozenset(data.get("singleton_directives", [])),
        directive_order=tuple((first, second) for first, second in data.get("directive_order", [])),
        source=source,
    )


def load_rule_tables(path: Optional[Path] = None, use_cache: bool = True) -> RuleTables:
    """
    Load rule tables from a YAML file with caching.

    Args:
        path: Rule file to load (default: packaged rules.yaml)
        use_cache: Whether to reuse previously loaded tables (default: True)

    Returns:
        RuleTables instance

    Raises:
        RuleTableError: If the file cannot be read, parsed or validated
    """
    rules_path = Path(path or DEFAULT_RULES_PATH).resolve()

    if use_cache and rules_path in _tables_cache:
        return _tables_cache[rules_path]

    try:
        content = rules_path.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleTableError(f"Cannot read rule table {rules_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RuleTableError(f"Failed to parse YAML in {rules_path}: {e}")

    tables = build_rule_tables(data, source=rules_path)
    logger.info(
        "Loaded rule tables from %s: %d document types, %d requirement rules, %d semantic classes",
        rules_path,
        len(tables.document_types),
        len(tables.requirements),
        len(tables.semantic_classes),
    )

    if use_cache:
        _tables_cache[rules_path] = tables

    return tables


def clear_cache() -> None:
    """Forget every cached rule table."""
    _tables_cache.clear()
