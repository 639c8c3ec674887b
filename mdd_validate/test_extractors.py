#!/usr/bin/env python3
"""
Test suite for extractors module.

Tests frontmatter extraction, directive scanning (state machine, line
numbers, fenced code), self-closing directives and semantic class
annotation extraction.
"""

import pytest

from mdd_validate.extractors import (
    DirectiveScanner,
    LineKind,
    classify_line,
    count_directives,
    extract_class_annotations,
    extract_directives,
    extract_facts,
    extract_frontmatter,
    fenced_code_lines,
    find_frontmatter_block,
    scan_directives,
)


# ============================================================================
# Frontmatter Tests
# ============================================================================

def test_extract_frontmatter_simple():
    """Test key/value extraction from a basic block."""
    text = "---\ntitle: Quarterly Report\ndocument-type: memo\n---\n\n# Body"
    assert extract_frontmatter(text) == {
        "title": "Quarterly Report",
        "document-type": "memo",
    }


def test_extract_frontmatter_strips_one_layer_of_quotes():
    """Test one layer of matching quotes is stripped."""
    text = "---\ntitle: \"Offer\"\nauthor: 'Jane Doe'\nnote: \"'kept'\"\n---\n"
    fm = extract_frontmatter(text)
    assert fm["title"] == "Offer"
    assert fm["author"] == "Jane Doe"
    assert fm["note"] == "'kept'"


def test_extract_frontmatter_splits_on_first_colon():
    """Test values keep colons after the first."""
    text = "---\ntime: 10:30\n---\n"
    assert extract_frontmatter(text) == {"time": "10:30"}


def test_extract_frontmatter_skips_lines_without_colon_or_value():
    """Test lines lacking a colon, a key or a value are skipped."""
    text = (
        "---\n"
        "title: X\n"
        "parties:\n"
        "  - ACME Corp\n"
        ": orphan value\n"
        "no colon on this line\n"
        "---\n"
    )
    assert extract_frontmatter(text) == {"title": "X"}


def test_extract_frontmatter_trims_indented_keys():
    """Test indented key/value lines still yield a trimmed key."""
    text = "---\n  title: X\ndocument-type: memo\n---\n"
    facts = extract_facts(text)
    assert facts.frontmatter == {"title": "X", "document-type": "memo"}
    assert facts.field_lines["title"] == 2


def test_extract_frontmatter_missing_block():
    """Documents without a leading delimiter have no frontmatter."""
    assert extract_frontmatter("# Title\n\ntitle: not frontmatter") == {}


def test_extract_frontmatter_unterminated_block():
    """Test an unterminated block counts as absent."""
    assert extract_frontmatter("---\ntitle: X\n\n# Body") == {}
    assert find_frontmatter_block("---\ntitle: X\n") is None


def test_extract_frontmatter_not_on_first_line():
    """Test the block must start on the first line."""
    assert extract_frontmatter("\n---\ntitle: X\n---\n") == {}


def test_extract_frontmatter_tolerates_bom_and_trailing_whitespace():
    """Test a BOM and trailing whitespace on delimiters are tolerated."""
    text = "\ufeff---  \ntitle: X\n---\t\n"
    assert extract_frontmatter(text) == {"title": "X"}


def test_find_frontmatter_block_lines():
    """Test block lines and delimiter positions."""
    block = find_frontmatter_block("---\ntitle: X\nstatus: draft\n---\nBody")
    assert block.lines == ("title: X", "status: draft")
    assert block.start_line == 1
    assert block.end_line == 4


def test_extract_facts_records_field_lines():
    """Test each frontmatter key records its line."""
    text = "---\ntitle: X\n\ndate: 2024-01-01\n---\n"
    facts = extract_facts(text)
    assert facts.has_frontmatter
    assert facts.field_lines == {"title": 2, "date": 4}


# ============================================================================
# Line Classification Tests
# ============================================================================

@pytest.mark.parametrize("line,expected", [
    ("::letterhead", (LineKind.OPEN, "letterhead", "")),
    (":::letterhead", (LineKind.OPEN, "letterhead", "")),
    ("::: signature-block", (LineKind.OPEN, "signature-block", "")),
    ("::Letterhead", (LineKind.OPEN, "letterhead", "")),
    ("::", (LineKind.CLOSE, None, "")),
    (":::", (LineKind.CLOSE, None, "")),
    ("   ::   ", (LineKind.CLOSE, None, "")),
    ("::page-break ::", (LineKind.SELF_CLOSING, "page-break", "")),
    ("::badge Approved ::", (LineKind.SELF_CLOSING, "badge", "Approved")),
    ("Plain text", (LineKind.TEXT, None, "")),
    ("::::", (LineKind.TEXT, None, "")),
    (":: 123", (LineKind.TEXT, None, "")),
])
def test_classify_line(line, expected):
    """Test line classification for the directive state machine."""
    assert classify_line(line) == expected


# ============================================================================
# Directive Extraction Tests
# ============================================================================

def test_extract_directives_round_trip():
    """A well-formed block yields type, trimmed content and opening line."""
    text = "# Doc\n\n::letterhead\nACME Corp\n\n123 Main St\n::\n"
    directives = extract_directives(text)

    assert len(directives) == 1
    directive = directives[0]
    assert directive.type == "letterhead"
    assert directive.content == "ACME Corp\n\n123 Main St"
    assert directive.line == 3
    assert directive.end_line == 7
    assert directive.has_end_marker
    assert not directive.self_closing


def test_extract_directives_line_numbers_count_frontmatter():
    """Test directive lines are absolute document lines."""
    text = "---\ntitle: X\n---\n::letterhead\nACME\n::\n"
    directive = extract_directives(text)[0]
    assert directive.line == 4
    assert directive.end_line == 6


def test_extract_directives_triple_colon():
    """Test triple-colon markers open and close directives."""
    directives = extract_directives(":::contact-info\nPhone: 555\n:::\n")
    assert [(d.type, d.content, d.has_end_marker) for d in directives] == [
        ("contact-info", "Phone: 555", True),
    ]


def test_extract_directives_self_closing():
    """Test self-closing directive extraction."""
    directives = extract_directives("Intro\n\n::page-break ::\n\nMore")
    assert len(directives) == 1
    assert directives[0].type == "page-break"
    assert directives[0].self_closing
    assert directives[0].has_end_marker
    assert directives[0].content == ""


def test_extract_directives_unclosed():
    """Test unclosed directives are kept without end marker."""
    directives = extract_directives("::letterhead\nACME Corp\n")
    assert len(directives) == 1
    assert directives[0].has_end_marker is False
    assert directives[0].end_line is None
    assert directives[0].content == "ACME Corp"


def test_scan_directives_orphaned_marker():
    """Test end markers outside a directive are recorded as orphaned."""
    scan = scan_directives("Some text\n::\n")
    assert scan.occurrences == ()
    assert scan.orphaned_end_lines == (2,)


def test_scan_directives_nesting_pairs_with_next_close():
    """Test a nested open pairs with the next close marker."""
    text = "::letterhead\nACME\n::contact-info\nPhone\n::\n::\n"
    scan = scan_directives(text)

    assert [d.type for d in scan.occurrences] == ["letterhead", "contact-info"]
    outer, inner = scan.occurrences
    assert outer.nested_in is None
    assert outer.has_end_marker and outer.end_line == 6
    assert inner.nested_in == "letterhead"
    assert inner.has_end_marker and inner.end_line == 5
    assert inner.content == "Phone"
    assert scan.orphaned_end_lines == ()


def test_scan_directives_ignores_fenced_code():
    """Test markers inside fenced code are plain text."""
    text = "```\n::letterhead\n::\n```\n\n~~~\n::footer\n~~~\n"
    scan = scan_directives(text)
    assert scan.occurrences == ()
    assert scan.orphaned_end_lines == ()


def test_fenced_code_lines():
    """Test fence line detection."""
    assert sorted(fenced_code_lines("text\n```\n::letterhead\n```\n")) == [1, 2, 3]
    assert fenced_code_lines("no fences here") == set()


def test_count_directives_first_seen_order():
    """Test directive counts keep first-seen order."""
    text = "::header\nH\n::\n::note\nA\n::\n::note\nB\n::\n"
    assert list(count_directives(extract_directives(text)).items()) == [
        ("header", 1),
        ("note", 2),
    ]


def test_directive_scanner_direct_feed():
    """Test feeding the scanner line by line."""
    scanner = DirectiveScanner()
    for line_no, line in enumerate(["::note", "text", "::"], start=1):
        scanner.feed(line_no, line, *classify_line(line))

    scan = scanner.finish()
    assert scan.occurrences[0].content == "text"
    assert scan.occurrences[0].end_line == 3


# ============================================================================
# Semantic Class Tests
# ============================================================================

def test_extract_class_annotations_single():
    """Test a single class annotation with its column."""
    annotations = extract_class_annotations("# Invoice {.invoice-title}")
    assert len(annotations) == 1
    assert annotations[0].name == "invoice-title"
    assert annotations[0].line == 1
    assert annotations[0].column == 11
    assert annotations[0].error is None


def test_extract_class_annotations_multiple_per_group():
    """Test several classes in one brace group."""
    annotations = extract_class_annotations("Total {.total-amount .highlight}")
    assert [a.name for a in annotations] == ["total-amount", "highlight"]
    assert {a.column for a in annotations} == {7}


def test_extract_class_annotations_lines_count_frontmatter():
    """Test annotation lines are absolute document lines."""
    text = "---\ntitle: X\n---\n\nBody {.note}\n"
    annotations = extract_class_annotations(text)
    assert [(a.name, a.line) for a in annotations] == [("note", 5)]


def test_extract_class_annotations_whitespace_and_attributes():
    """Test whitespace and non-class attributes in a group."""
    annotations = extract_class_annotations("Para { .highlight key=value }\n")
    assert [a.name for a in annotations] == ["highlight"]


def test_extract_class_annotations_ignores_non_class_braces():
    """Test braces without a leading dot are ignored."""
    assert extract_class_annotations('Data {"a": 1} and {#anchor}') == []


def test_extract_class_annotations_malformed():
    """Test malformed annotations carry an error description."""
    annotations = extract_class_annotations("A {.}\nB {.bad!name}\nC {.unclosed text\n")
    assert [(a.line, a.error) for a in annotations] == [
        (1, "empty class name"),
        (2, "illegal characters in class name"),
        (3, "unmatched brace"),
    ]


def test_extract_class_annotations_ignores_fenced_code():
    """Test annotations inside fenced code are ignored."""
    text = "```\n{.not-a-class}\n```\n"
    assert extract_class_annotations(text) == []


def test_extract_facts_bundle():
    """Test extract_facts bundles every extractor."""
    text = "---\ntitle: X\n---\n::note {.highlight}\nBody\n::\n"
    facts = extract_facts(text)
    assert facts.frontmatter == {"title": "X"}
    assert [d.type for d in facts.directives.occurrences] == ["note"]
    assert [c.name for c in facts.classes] == ["highlight"]


def test_extract_facts_never_raises_on_garbage():
    """Test extraction degrades instead of raising."""
    facts = extract_facts("::\n{.\n---\n:::\n\x00\n```")
    assert not facts.has_frontmatter
