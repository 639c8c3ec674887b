#!/usr/bin/env python3
"""
Test suite for directive_checker module.

Tests end marker pairing, nesting, orphaned markers, empty directives,
duplicate singleton directives and directive ordering.
"""

import pytest

from mdd_validate.diagnostics import ErrorCode
from mdd_validate.directive_checker import DirectiveChecker
from mdd_validate.extractors import extract_facts
from mdd_validate.rule_tables import build_rule_tables, load_rule_tables


@pytest.fixture
def checker():
    return DirectiveChecker(load_rule_tables())


def run(checker, text):
    return checker.check(extract_facts(text))


def codes(diagnostics):
    return [d.code for d in diagnostics]


# ============================================================================
# Pairing
# ============================================================================

def test_well_formed_directives(checker):
    """Test closed directives produce no diagnostics."""
    text = "::letterhead\nACME Corp\n::\n\nBody\n\n::signature-block\nJane\n::\n"
    run(checker, text)
    assert checker.errors == []
    assert checker.warnings == []


def test_missing_end_marker(checker):
    """Test an unclosed directive is MISSING_END_MARKER."""
    run(checker, "Intro\n::letterhead\nACME Corp\n")
    assert codes(checker.errors) == [ErrorCode.MISSING_END_MARKER]
    error = checker.errors[0]
    assert error.location.line == 2
    assert error.location.directive == "letterhead"
    assert "letterhead" in error.message


def test_orphaned_end_marker(checker):
    """Test a stray end marker is ORPHANED_END_MARKER."""
    run(checker, "::note\nText\n::\n::\n")
    assert codes(checker.errors) == [ErrorCode.ORPHANED_END_MARKER]
    assert checker.errors[0].location.line == 4


def test_nesting_produces_exactly_one_error(checker):
    """Test a closed nested pair gives exactly one nesting error."""
    text = "::letterhead\nACME\n::contact-info\nPhone\n::\n::\n"
    run(checker, text)
    assert codes(checker.errors) == [ErrorCode.INVALID_DIRECTIVE_NESTING]
    error = checker.errors[0]
    assert error.location.line == 3
    assert error.location.directive == "contact-info"
    assert "letterhead" in error.message


def test_nesting_with_unclosed_outer(checker):
    """Test an unclosed outer directive adds MISSING_END_MARKER."""
    text = "::letterhead\nACME\n::contact-info\nPhone\n::\n"
    run(checker, text)
    assert sorted(codes(checker.errors)) == sorted([
        ErrorCode.INVALID_DIRECTIVE_NESTING,
        ErrorCode.MISSING_END_MARKER,
    ])


def test_self_closing_inside_directive_is_not_nesting(checker):
    """Test self-closing directives may appear inside a block."""
    run(checker, "::note\nPart one\n::page-break ::\nPart two\n::\n")
    assert checker.errors == []


def test_markers_in_fenced_code_are_ignored(checker):
    """Test markers in fenced code are not checked."""
    run(checker, "```\n::letterhead\n::\n::\n```\n")
    assert checker.errors == []
    assert checker.warnings == []


# ============================================================================
# Warnings
# ============================================================================

def test_empty_directive_warning(checker):
    """Test an empty block is EMPTY_DIRECTIVE."""
    run(checker, "Text\n\n::footer\n::\n")
    assert checker.errors == []
    assert codes(checker.warnings) == [ErrorCode.EMPTY_DIRECTIVE]
    assert checker.warnings[0].location.directive == "footer"


def test_whitespace_only_directive_is_empty(checker):
    """Test a whitespace-only block counts as empty."""
    run(checker, "::note\n   \n\n::\n")
    assert codes(checker.warnings) == [ErrorCode.EMPTY_DIRECTIVE]


def test_self_closing_directive_is_not_empty(checker):
    """Test self-closing directives are never empty."""
    run(checker, "Text\n\n::page-break ::\n\nMore")
    assert checker.warnings == []


def test_unclosed_empty_directive_only_reports_missing_end(checker):
    """Test an unclosed empty block only reports the missing end."""
    run(checker, "::footer\n")
    assert codes(checker.errors) == [ErrorCode.MISSING_END_MARKER]
    assert checker.warnings == []


def test_duplicate_letterhead(checker):
    """Test a second letterhead is DUPLICATE_DIRECTIVE."""
    text = "::letterhead\nA\n::\n\n::letterhead\nB\n::\n"
    run(checker, text)
    assert checker.errors == []
    assert codes(checker.warnings) == [ErrorCode.DUPLICATE_DIRECTIVE]
    warning = checker.warnings[0]
    assert warning.location.line == 5
    assert "2 times" in warning.message


def test_repeated_non_singleton_is_fine(checker):
    """Test repeating a non-singleton directive is allowed."""
    run(checker, "::note\nA\n::\n::note\nB\n::\n")
    assert checker.warnings == []


def test_directive_order(checker):
    """Test signature-block before letterhead is INVALID_DIRECTIVE_ORDER."""
    text = "::signature-block\nJane\n::\n\n::letterhead\nACME\n::\n"
    run(checker, text)
    assert codes(checker.warnings) == [ErrorCode.INVALID_DIRECTIVE_ORDER]
    warning = checker.warnings[0]
    assert warning.location.directive == "signature-block"
    assert warning.location.line == 1


def test_directive_order_skipped_when_one_side_missing(checker):
    """Test order pairs need both directives present."""
    run(checker, "::signature-block\nJane\n::\n")
    assert checker.warnings == []


def test_tables_drive_singletons_and_order():
    """Test singleton and order policies come from the rule tables."""
    tables = build_rule_tables({
        "schema_version": 1,
        "document_types": ["memo"],
        "statuses": ["draft"],
        "semantic_classes": [],
        "requirements": {},
        "singleton_directives": ["note"],
        "directive_order": [["summary", "note"]],
    })
    checker = DirectiveChecker(tables)

    run(checker, "::letterhead\nA\n::\n::letterhead\nB\n::\n")
    assert checker.warnings == []

    run(checker, "::note\nA\n::\n::note\nB\n::\n::summary\nS\n::\n")
    assert codes(checker.warnings) == [
        ErrorCode.DUPLICATE_DIRECTIVE,
        ErrorCode.INVALID_DIRECTIVE_ORDER,
    ]
