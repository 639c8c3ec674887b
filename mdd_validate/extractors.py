"""
Document Fact Extractors

Pure functions that scan raw MDD text and return structured facts for the
rule checkers. Extraction never raises on document content: missing or
broken structures degrade to empty or partial results and are judged later
by the checkers.

Key Features:
- Frontmatter block location and key/value extraction with per-key lines
- Directive scanning as an explicit Outside / InsideDirective state machine
- Semantic class annotation extraction ({.name} tokens) with columns
- Fenced code blocks (located with markdown-it-py) are treated as plain text
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from markdown_it import MarkdownIt

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

# ::name, ::: name, ::name trailing text
_DIRECTIVE_OPEN_RE = re.compile(r'^(:{2,3})\s*([A-Za-z][\w-]*)(.*)$')
_END_MARKERS = ("::", ":::")

# {.name or { .name
_CLASS_OPEN_RE = re.compile(r'\{\s*\.')
_CLASS_NAME_RE = re.compile(r'^-?[A-Za-z_][\w-]*$')

_md = MarkdownIt()


@dataclass(frozen=True)
class FrontmatterBlock:
    """
    Location and raw lines of the frontmatter block.

    Attributes:
        lines: Lines between the delimiters
        start_line: Line of the opening delimiter (1-based)
        end_line: Line of the closing delimiter (1-based)
    """
    lines: Tuple[str, ...]
    start_line: int
    end_line: int


@dataclass(frozen=True)
class DirectiveOccurrence:
    """
    One directive block found in the document.

    Attributes:
        type: Directive name, lowercase
        content: Inner text, trimmed at the outer edges only
        line: Opening line (1-based)
        has_end_marker: Whether a closing marker was found
        self_closing: Open and close marker on the same line
        end_line: Closing line, None when never closed
        nested_in: Type of the directive that was still open when this one opened
    """
    type: str
    content: str
    line: int
    has_end_marker: bool
    self_closing: bool = False
    end_line: Optional[int] = None
    nested_in: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "content": self.content,
            "line": self.line,
            "hasEndMarker": self.has_end_marker,
            "selfClosing": self.self_closing,
        }


@dataclass(frozen=True)
class DirectiveScan:
    """Directive occurrences plus stray end markers."""
    occurrences: Tuple[DirectiveOccurrence, ...] = ()
    orphaned_end_lines: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ClassAnnotation:
    """
    A {.class-name} token.

    Attributes:
        name: Class name without the leading dot (raw text for malformed tokens)
        line: Line number (1-based)
        column: Column of the opening brace (1-based)
        error: None when well-formed, otherwise what is wrong with the syntax
    """
    name: str
    line: int
    column: int
    error: Optional[str] = None


@dataclass(frozen=True)
class DocumentFacts:
    """Everything the checkers need, extracted once per validation run."""
    frontmatter_block: Optional[FrontmatterBlock]
    frontmatter: Dict[str, str]
    field_lines: Dict[str, int]
    directives: DirectiveScan
    classes: Tuple[ClassAnnotation, ...]

    @property
    def has_frontmatter(self) -> bool:
        return self.frontmatter_block is not None


# ============================================================================
# Frontmatter
# ============================================================================

def find_frontmatter_block(content: str) -> Optional[FrontmatterBlock]:
    """
    Locate the frontmatter block at the top of the document.

    The block starts with a line containing only ``---`` as the very first
    line and ends at the next such line. An unterminated block counts as
    absent.

    Example:
        >>> block = find_frontmatter_block("---\\ntitle: X\\n---\\nBody")
        >>> block.lines, block.start_line, block.end_line
        (('title: X',), 1, 3)
    """
    lines = content.splitlines()
    if not lines or lines[0].lstrip("\ufeff").rstrip() != FRONTMATTER_DELIMITER:
        return None

    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == FRONTMATTER_DELIMITER:
            return FrontmatterBlock(lines=tuple(lines[1:idx]), start_line=1, end_line=idx + 1)

    return None


def _strip_quotes(value: str) -> str:
    """Remove one layer of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def _parse_frontmatter_lines(block: FrontmatterBlock) -> Tuple[Dict[str, str], Dict[str, int]]:
    frontmatter: Dict[str, str] = {}
    field_lines: Dict[str, int] = {}

    for offset, line in enumerate(block.lines):
        key, sep, value = line.partition(":")
        if not sep:
            continue

        key = key.strip()
        value = value.strip()
        if not key or not value:
            continue

        frontmatter[key] = _strip_quotes(value)
        field_lines[key] = block.start_line + 1 + offset

    return frontmatter, field_lines


def extract_frontmatter(content: str) -> Dict[str, str]:
    """
    Extract frontmatter key/value pairs.

    Args:
        content: Raw document text

    Returns:
        Mapping of frontmatter keys to string values (empty if no block)

    Example:
        >>> extract_frontmatter('---\\ntitle: "Quarterly Report"\\nstatus: draft\\n---\\n')
        {'title': 'Quarterly Report', 'status': 'draft'}
    """
    block = find_frontmatter_block(content)
    if block is None:
        return {}
    frontmatter, _ = _parse_frontmatter_lines(block)
    return frontmatter


# ============================================================================
# Body scanning helpers
# ============================================================================

def _body_start(block: Optional[FrontmatterBlock]) -> int:
    """0-based index of the first body line."""
    return block.end_line if block is not None else 0


def fenced_code_lines(body: str) -> Set[int]:
    """
    Find lines inside fenced code blocks.

    Args:
        body: Document body text (frontmatter already removed)

    Returns:
        Set of 0-based body line indices covered by fences, markers included

    Example:
        >>> sorted(fenced_code_lines("text\\n```\\n::letterhead\\n```\\n"))
        [1, 2, 3]
    """
    covered: Set[int] = set()
    for token in _md.parse(body):
        if token.type == "fence" and token.map:
            covered.update(range(token.map[0], token.map[1]))
    return covered


class LineKind(Enum):
    TEXT = "text"
    OPEN = "open"
    CLOSE = "close"
    SELF_CLOSING = "self_closing"


def classify_line(line: str) -> Tuple[LineKind, Optional[str], str]:
    """
    Classify one line for the directive state machine.

    Returns:
        Tuple of (kind, directive type or None, inline content)

    Example:
        >>> classify_line("::letterhead")
        (<LineKind.OPEN: 'open'>, 'letterhead', '')
        >>> classify_line("::page-break ::")
        (<LineKind.SELF_CLOSING: 'self_closing'>, 'page-break', '')
        >>> classify_line("  ::  ")
        (<LineKind.CLOSE: 'close'>, None, '')
    """
    stripped = line.strip()

    if stripped in _END_MARKERS:
        return LineKind.CLOSE, None, ""

    match = _DIRECTIVE_OPEN_RE.match(stripped)
    if not match:
        return LineKind.TEXT, None, ""

    name = match.group(2).lower()
    remainder = match.group(3)

    marker_pos = remainder.rfind("::")
    if marker_pos != -1:
        inline = remainder[:marker_pos].rstrip(":").strip()
        return LineKind.SELF_CLOSING, name, inline

    return LineKind.OPEN, name, ""


# ============================================================================
# Directive state machine
# ============================================================================

@dataclass
class _OpenDirective:
    type: str
    line: int
    nested_in: Optional[str]
    lines: List[str] = field(default_factory=list)

    def finish(self, end_line: Optional[int]) -> DirectiveOccurrence:
        return DirectiveOccurrence(
            type=self.type,
            content="\n".join(self.lines).strip(),
            line=self.line,
            has_end_marker=end_line is not None,
            self_closing=False,
            end_line=end_line,
            nested_in=self.nested_in,
        )


class DirectiveScanner:
    """
    Line-driven state machine for directive blocks.

    States are Outside (no open directive) and InsideDirective (one or more
    open directives). Opening while inside is a disallowed transition: the
    new directive is recorded with ``nested_in`` set and still pairs with the
    next end marker. An end marker while outside is recorded as orphaned.
    """

    def __init__(self):
        self._open: List[_OpenDirective] = []
        self._occurrences: List[DirectiveOccurrence] = []
        self._orphaned: List[int] = []

    def feed(self, line_no: int, line: str, kind: LineKind, name: Optional[str], inline: str) -> None:
        if kind is LineKind.CLOSE:
            if not self._open:
                self._orphaned.append(line_no)
                return
            closed = self._open.pop()
            self._occurrences.append(closed.finish(line_no))
            self._accumulate(line)
            return

        if kind is LineKind.OPEN:
            self._accumulate(line)
            nested_in = self._open[-1].type if self._open else None
            self._open.append(_OpenDirective(type=name, line=line_no, nested_in=nested_in))
            return

        if kind is LineKind.SELF_CLOSING:
            self._accumulate(line)
            self._occurrences.append(DirectiveOccurrence(
                type=name,
                content=inline,
                line=line_no,
                has_end_marker=True,
                self_closing=True,
                end_line=line_no,
            ))
            return

        self._accumulate(line)

    def _accumulate(self, line: str) -> None:
        for directive in self._open:
            directive.lines.append(line)

    def finish(self) -> DirectiveScan:
        """Close the scan; still-open directives are reported without end marker."""
        occurrences = list(self._occurrences)
        occurrences.extend(directive.finish(None) for directive in self._open)
        occurrences.sort(key=lambda occ: occ.line)
        return DirectiveScan(
            occurrences=tuple(occurrences),
            orphaned_end_lines=tuple(self._orphaned),
        )


def scan_directives(content: str) -> DirectiveScan:
    """
    Scan the document body for directive blocks.

    Args:
        content: Raw document text

    Returns:
        DirectiveScan with occurrences ordered by opening line

    Example:
        >>> scan = scan_directives("::note\\nRemember\\n::\\n::")
        >>> [(d.type, d.content, d.has_end_marker) for d in scan.occurrences]
        [('note', 'Remember', True)]
        >>> scan.orphaned_end_lines
        (4,)
    """
    block = find_frontmatter_block(content)
    start = _body_start(block)
    lines = content.splitlines()
    body_lines = lines[start:]
    fenced = fenced_code_lines("\n".join(body_lines))

    scanner = DirectiveScanner()
    for offset, line in enumerate(body_lines):
        if offset in fenced:
            kind, name, inline = LineKind.TEXT, None, ""
        else:
            kind, name, inline = classify_line(line)
        scanner.feed(start + offset + 1, line, kind, name, inline)

    return scanner.finish()


def extract_directives(content: str) -> List[DirectiveOccurrence]:
    """
    Extract directive occurrences.

    Args:
        content: Raw document text

    Returns:
        List of DirectiveOccurrence ordered by opening line

    Example:
        >>> text = "# Doc\\n\\n::letterhead\\nACME Corp\\n::\\n"
        >>> directives = extract_directives(text)
        >>> directives[0].type, directives[0].content, directives[0].line
        ('letterhead', 'ACME Corp', 3)
    """
    return list(scan_directives(content).occurrences)


def count_directives(directives) -> Dict[str, int]:
    """Directive type to number of occurrences, in first-seen order."""
    counts: Dict[str, int] = {}
    for directive in directives:
        counts[directive.type] = counts.get(directive.type, 0) + 1
    return counts


# ============================================================================
# Semantic class annotations
# ============================================================================

def _scan_class_line(line: str, line_no: int) -> List[ClassAnnotation]:
    found: List[ClassAnnotation] = []

    for match in _CLASS_OPEN_RE.finditer(line):
        start = match.start()
        close = line.find("}", match.end())
        reopen = line.find("{", match.end())

        if close == -1 or (reopen != -1 and reopen < close):
            fragment = line[start:reopen if reopen != -1 else len(line)].strip()
            found.append(ClassAnnotation(
                name=fragment,
                line=line_no,
                column=start + 1,
                error="unmatched brace",
            ))
            continue

        for token in line[start + 1:close].split():
            if not token.startswith("."):
                # ids and key=value attributes are not classes
                continue
            name = token[1:]
            if not name:
                error = "empty class name"
            elif not _CLASS_NAME_RE.match(name):
                error = "illegal characters in class name"
            else:
                error = None
            found.append(ClassAnnotation(name=name, line=line_no, column=start + 1, error=error))

    return found


def extract_class_annotations(content: str) -> List[ClassAnnotation]:
    """
    Extract {.class} annotations from the document body.

    Args:
        content: Raw document text

    Returns:
        List of ClassAnnotation in document order

    Example:
        >>> text = "# Invoice {.invoice-title}\\n\\nTotal {.total-amount .highlight}"
        >>> [(a.name, a.line) for a in extract_class_annotations(text)]
        [('invoice-title', 1), ('total-amount', 3), ('highlight', 3)]
    """
    block = find_frontmatter_block(content)
    start = _body_start(block)
    body_lines = content.splitlines()[start:]
    fenced = fenced_code_lines("\n".join(body_lines))

    annotations: List[ClassAnnotation] = []
    for offset, line in enumerate(body_lines):
        if offset in fenced or "{" not in line:
            continue
        annotations.extend(_scan_class_line(line, start + offset + 1))

    return annotations


def extract_facts(content: str) -> DocumentFacts:
    """
    Run every extractor once.

    Args:
        content: Raw document text

    Returns:
        DocumentFacts bundle for the checkers
    """
    block = find_frontmatter_block(content)
    if block is not None:
        frontmatter, field_lines = _parse_frontmatter_lines(block)
    else:
        frontmatter, field_lines = {}, {}

    directives = scan_directives(content)
    classes = tuple(extract_class_annotations(content))

    logger.debug(
        "Extracted %d frontmatter fields, %d directives, %d class annotations",
        len(frontmatter),
        len(directives.occurrences),
        len(classes),
    )

    return DocumentFacts(
        frontmatter_block=block,
        frontmatter=frontmatter,
        field_lines=field_lines,
        directives=directives,
        classes=classes,
    )
