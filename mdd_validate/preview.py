#!/usr/bin/env python3
"""
MDD Preview Renderer

Converts MDD documents to standalone HTML for browser preview, with the
validation report prepended when the document has diagnostics.

Key Features:
- Markdown body rendered with markdown-it-py (frontmatter stripped)
- Directive blocks become <div class="TYPE"> wrappers
- page-break / section-break self-closing directives become layout markers
- Report block listing errors and warnings; omitted for clean documents
"""

import html
import sys
from pathlib import Path
from typing import Dict, List, Optional

from markdown_it import MarkdownIt

from .diagnostics import Diagnostic, ValidationResult
from .extractors import LineKind, classify_line, extract_frontmatter, fenced_code_lines, find_frontmatter_block

_md = MarkdownIt("commonmark", {"html": True}).enable("table")

PAGE_STYLE = """
    body { font-family: Georgia, 'Times New Roman', serif; font-size: 12pt; line-height: 1.6; color: #333; background: #f5f5f5; padding: 2rem; }
    .document-container { max-width: 8.5in; margin: 0 auto; background: white; padding: 1in; box-shadow: 0 2px 8px rgba(0,0,0,0.1); }
    .letterhead { text-align: center; border-bottom: 2px solid #333; padding-bottom: 1rem; margin-bottom: 2rem; font-weight: bold; }
    .header, .footer { text-align: center; font-size: 10pt; color: #666; }
    .contact-info { background: #f9f9f9; border: 1px solid #ddd; padding: 1rem; margin: 1rem 0; }
    .signature-block { margin-top: 3rem; page-break-inside: avoid; }
    .metadata { font-size: 10pt; color: #666; margin-bottom: 2rem; padding: 1rem; background: #f9f9f9; border-left: 4px solid #0066cc; }
    .mdd-validation-report { margin-bottom: 2rem; padding: 1rem; border: 1px solid #ddd; font-family: sans-serif; font-size: 10pt; }
    .mdd-validation-report .error { color: #b00020; }
    .mdd-validation-report .warning { color: #8a6d00; }
    @media print { body { background: white; padding: 0; } .page-break { page-break-after: always; } .mdd-validation-report { display: none; } }
"""


def _render_diagnostic(diagnostic: Diagnostic) -> str:
    where = diagnostic.location.describe()
    parts = [
        f'<li class="{diagnostic.severity.value}">',
        f"<strong>{html.escape(diagnostic.code.value)}</strong>: {html.escape(diagnostic.message)}",
    ]
    if where:
        parts.append(f' <span class="location">({html.escape(where)})</span>')
    if diagnostic.suggestion:
        parts.append(f' <em class="suggestion">{html.escape(diagnostic.suggestion)}</em>')
    parts.append("</li>")
    return "".join(parts)


def render_report(result: ValidationResult) -> str:
    """
    Render the validation report block.

    Args:
        result: Validation result to report

    Returns:
        HTML fragment, or an empty string when there is nothing to report
    """
    if not result.errors and not result.warnings:
        return ""

    parts = ['<div class="mdd-validation-report">']
    if result.errors:
        parts.append(f"<h2>Errors ({len(result.errors)})</h2>")
        parts.append("<ul>")
        parts.extend(_render_diagnostic(error) for error in result.errors)
        parts.append("</ul>")
    if result.warnings:
        parts.append(f"<h2>Warnings ({len(result.warnings)})</h2>")
        parts.append("<ul>")
        parts.extend(_render_diagnostic(warning) for warning in result.warnings)
        parts.append("</ul>")
    parts.append("</div>")
    return "\n".join(parts)


def _directive_html(kind: LineKind, name: str, inline: str) -> str:
    if kind is LineKind.SELF_CLOSING:
        if name == "page-break":
            return '<div class="page-break"></div>'
        if name == "section-break":
            return '<hr class="section-break">'
        return f'<div class="{html.escape(name)}">{html.escape(inline)}</div>'
    return f'<div class="{html.escape(name)}">'


def render_document(content: str) -> str:
    """
    Render the document body to HTML.

    Directive marker lines are replaced by raw HTML blocks (surrounded by
    blank lines so markdown-it treats them as HTML blocks) and the text
    between them is rendered as markdown.

    Args:
        content: Raw document text

    Returns:
        HTML fragment for the body
    """
    block = find_frontmatter_block(content)
    lines = content.splitlines()
    body_lines = lines[block.end_line:] if block is not None else lines
    fenced = fenced_code_lines("\n".join(body_lines))

    out: List[str] = []
    open_count = 0
    for offset, line in enumerate(body_lines):
        if offset in fenced:
            out.append(line)
            continue

        kind, name, inline = classify_line(line)
        if kind is LineKind.TEXT:
            out.append(line)
        elif kind is LineKind.CLOSE:
            if open_count:
                open_count -= 1
                out.extend(["", "</div>", ""])
            else:
                out.append(html.escape(line))
        else:
            if kind is LineKind.OPEN:
                open_count += 1
            out.extend(["", _directive_html(kind, name, inline), ""])

    # Unclosed directives still need balanced markup
    out.extend(["", "</div>"] * open_count)

    return _md.render("\n".join(out))


def render_preview(content: str, result: Optional[ValidationResult] = None) -> str:
    """
    Render a complete HTML page.

    Args:
        content: Raw document text
        result: Optional validation result; its report is prepended

    Returns:
        HTML document as a string
    """
    metadata: Dict[str, str] = extract_frontmatter(content)
    title = metadata.get("title") or "MDD Document Preview"

    meta_items = []
    for key, label in (("title", "Title"), ("date", "Date"), ("author", "Author"), ("document-type", "Type")):
        if metadata.get(key):
            meta_items.append(f"<dt>{label}:</dt><dd>{html.escape(metadata[key])}</dd>")
    meta_block = f'<div class="metadata"><dl>{"".join(meta_items)}</dl></div>' if meta_items else ""

    report = render_report(result) if result is not None else ""

    return f"""<!DOCTYPE html>
<html lang="{html.escape(metadata.get('language', 'en'))}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{html.escape(title)}</title>
  <style>{PAGE_STYLE}</style>
</head>
<body>
  <div class="document-container">
    {report}
    {meta_block}
    {render_document(content)}
  </div>
</body>
</html>
"""


def main(argv: Optional[List[str]] = None) -> int:
    """Write an HTML preview next to the input (or to the given output path)."""
    from .validator import validate_document

    args = sys.argv[1:] if argv is None else argv

    if not args:
        print("Usage: mdd-preview <input.mdd> [output.html]", file=sys.stderr)
        return 1

    input_path = Path(args[0]).resolve()
    output_path = Path(args[1]).resolve() if len(args) > 1 else input_path.with_suffix(".html")

    try:
        content = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = validate_document(content)
    page = render_preview(content, result)
    output_path.write_text(page, encoding="utf-8")

    print(f"Processing: {input_path}")
    for diagnostic in result.errors + result.warnings:
        print(diagnostic.format_error(), file=sys.stderr)
    print(f"✓ Preview generated: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
