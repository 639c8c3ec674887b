#!/usr/bin/env python3
"""Command-line validator for MDD documents."""

import argparse
import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.markup import escape

from . import __version__
from .diagnostics import Diagnostic, ErrorCode, Severity, ValidationResult, failed_result
from .log import setup_logging
from .rule_tables import RuleTableError, RuleTables, load_rule_tables
from .validator import ValidationOptions, validate_document

logger = logging.getLogger(__name__)

MDD_EXTENSION = ".mdd"
BANNER_WIDTH = 80

EXIT_VALID = 0
EXIT_ERRORS = 1
EXIT_STRICT_WARNINGS = 2


@dataclass(frozen=True)
class FileReport:
    """Validation result for one file plus CLI bookkeeping."""
    file_path: str
    result: ValidationResult
    processing_time: float
    exit_code: int

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["filePath"] = self.file_path
        data["processingTime"] = self.processing_time
        data["exitCode"] = self.exit_code
        return data


def exit_code_for(result: ValidationResult, strict: bool) -> int:
    """
    Map a result to the process exit code.

    Returns:
        0 when valid, 1 when there are errors, 2 for warnings in strict mode
    """
    if result.errors:
        return EXIT_ERRORS
    if strict and result.warnings:
        return EXIT_STRICT_WARNINGS
    return EXIT_VALID


def overall_exit_code(reports: List[FileReport]) -> int:
    """
    Combine per-file exit codes.

    Errors in any file win over strict-mode warnings in another.
    """
    codes = {report.exit_code for report in reports}
    if EXIT_ERRORS in codes:
        return EXIT_ERRORS
    if EXIT_STRICT_WARNINGS in codes:
        return EXIT_STRICT_WARNINGS
    return EXIT_VALID


def validate_file(file_path: str, tables: RuleTables, strict: bool = False) -> FileReport:
    """Read and validate one file, turning I/O failures into single-error results.

    Args:
        file_path: Path given on the command line
        tables: Loaded rule tables
        strict: Whether warnings fail validation

    Returns:
        FileReport for the file
    """
    start = time.perf_counter()
    path = Path(file_path)

    if not path.exists():
        result = failed_result(
            ErrorCode.FILE_NOT_FOUND,
            f"File not found: {file_path}",
            "Check the file path and try again",
        )
    elif path.suffix != MDD_EXTENSION:
        result = failed_result(
            ErrorCode.INVALID_FILE_TYPE,
            f"Invalid file type: {file_path} (expected {MDD_EXTENSION})",
            f"The validator only processes {MDD_EXTENSION} files",
        )
    else:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Failed to read %s", file_path, exc_info=True)
            result = failed_result(
                ErrorCode.PROCESSING_ERROR,
                f"Cannot read {file_path}: {e}",
                "Check that the file is readable UTF-8 text",
            )
        else:
            options = ValidationOptions(strict=strict)
            result = validate_document(content, options, tables)

    elapsed = round((time.perf_counter() - start) * 1000, 2)
    logger.debug("Validated %s in %sms", file_path, elapsed)

    return FileReport(
        file_path=file_path,
        result=result,
        processing_time=elapsed,
        exit_code=exit_code_for(result, strict),
    )


def validate_files(files: List[str], tables: RuleTables, strict: bool = False, jobs: int = 1) -> List[FileReport]:
    """Validate files, optionally in parallel; output order follows input order."""
    if jobs <= 1 or len(files) <= 1:
        return [validate_file(f, tables, strict) for f in files]

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        return list(executor.map(lambda f: validate_file(f, tables, strict), files))


# ============================================================================
# Human-readable output
# ============================================================================

def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render one diagnostic as rich markup."""
    if diagnostic.severity is Severity.ERROR:
        color, symbol = "red", "✗"
    else:
        color, symbol = "yellow", "⚠"

    lines = [
        f"[{color}]{symbol} [bold]{diagnostic.severity.value.upper()}[/bold] "
        f"\\[{diagnostic.code.value}][/{color}]",
        f"  {escape(diagnostic.message)}",
    ]

    where = diagnostic.location.describe()
    if where:
        lines.append(f"  [bright_black]at {escape(where)}[/bright_black]")
    if diagnostic.suggestion:
        lines.append(f"  [cyan]💡 {escape(diagnostic.suggestion)}[/cyan]")

    return "\n".join(lines) + "\n"


def print_summary(console: Console, report: FileReport) -> None:
    """Print the banner and one-line statistics for a file."""
    result = report.result
    rule = "─" * BANNER_WIDTH

    console.print()
    console.print(rule)
    if result.valid:
        console.print(f"[bold green]✓ VALID[/bold green] [bright_black]{escape(report.file_path)}[/bright_black]")
    else:
        console.print(f"[bold red]✗ INVALID[/bold red] [bright_black]{escape(report.file_path)}[/bright_black]")
    console.print(rule)

    stats = []
    fm = result.frontmatter
    stats.append(f"Document Type: [cyan]{escape(fm.get('document-type', 'unknown'))}[/cyan]")
    if fm.get("title"):
        stats.append(f"Title: [cyan]{escape(fm['title'])}[/cyan]")

    total = sum(result.directive_counts.values())
    stats.append(f"Directives: [cyan]{total}[/cyan] ({len(result.directive_counts)} types)")

    error_color = "red" if result.errors else "green"
    warning_color = "yellow" if result.warnings else "green"
    stats.append(f"Errors: [{error_color}]{len(result.errors)}[/{error_color}]")
    stats.append(f"Warnings: [{warning_color}]{len(result.warnings)}[/{warning_color}]")
    stats.append(f"Time: [bright_black]{report.processing_time}ms[/bright_black]")

    console.print(" │ ".join(stats))
    console.print(rule)
    console.print()


def print_directive_summary(console: Console, directive_counts: Dict[str, int]) -> None:
    if not directive_counts:
        return

    console.print("[bold]Directives Found:[/bold]")
    for directive, count in directive_counts.items():
        console.print(f"  ::{escape(directive)} [bright_black]×{count}[/bright_black]")
    console.print()


def print_report(console: Console, report: FileReport, verbose: bool = False) -> None:
    result = report.result
    print_summary(console, report)

    if verbose:
        print_directive_summary(console, result.directive_counts)

    if result.errors:
        console.print(f"[bold red]ERRORS ({len(result.errors)}):[/bold red]\n")
        for error in result.errors:
            console.print(format_diagnostic(error))

    if result.warnings:
        console.print(f"[bold yellow]WARNINGS ({len(result.warnings)}):[/bold yellow]\n")
        for warning in result.warnings:
            console.print(format_diagnostic(warning))

    if result.valid:
        console.print("[green]✓ Document is valid[/green]\n")


def print_totals(console: Console, reports: List[FileReport]) -> None:
    """Multi-file summary."""
    valid_count = sum(1 for r in reports if r.result.valid)
    total_errors = sum(len(r.result.errors) for r in reports)
    total_warnings = sum(len(r.result.warnings) for r in reports)

    console.print("═" * BANNER_WIDTH)
    console.print("[bold]SUMMARY[/bold]")
    console.print(f"Files validated: [cyan]{len(reports)}[/cyan]")
    console.print(f"Valid: [green]{valid_count}[/green] │ Invalid: [red]{len(reports) - valid_count}[/red]")
    console.print(f"Total errors: [{'red' if total_errors else 'green'}]{total_errors}[/]")
    console.print(f"Total warnings: [{'yellow' if total_warnings else 'green'}]{total_warnings}[/]")
    console.print("═" * BANNER_WIDTH)
    console.print()


# ============================================================================
# Entry point
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdd-validate",
        description="Validate MDD business documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s document.mdd
  %(prog)s invoice.mdd proposal.mdd contract.mdd
  %(prog)s --strict document.mdd
  %(prog)s --json document.mdd

Exit codes:
  0   All documents valid
  1   Validation errors found
  2   Warnings found (strict mode only)
        """
    )

    parser.add_argument(
        'files',
        nargs='*',
        metavar='file',
        help='MDD documents to validate'
    )
    parser.add_argument(
        '-s', '--strict',
        action='store_true',
        help='Treat warnings as errors (fail on warnings)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show directive summary and debug logging'
    )
    parser.add_argument(
        '-j', '--json',
        action='store_true',
        help='Output results as JSON'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument(
        '--rules',
        type=Path,
        default=None,
        help='Rule table YAML file (default: bundled rules)'
    )
    parser.add_argument(
        '--show-effective-rules',
        action='store_true',
        help='Show resolved rule tables and exit (debug mode)'
    )
    parser.add_argument(
        '--jobs',
        type=int,
        default=1,
        help='Number of files to validate in parallel (default: 1)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the validation tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "WARNING")

    console = Console(highlight=False, emoji=False, soft_wrap=True)
    err_console = Console(stderr=True, highlight=False, emoji=False)

    try:
        tables = load_rule_tables(args.rules)
    except RuleTableError as e:
        err_console.print(f"[red]Fatal error:[/red] {escape(str(e))}")
        return EXIT_ERRORS

    if args.show_effective_rules:
        print("=== Effective Rule Tables ===")
        print(f"Source: {tables.source}\n")
        print(yaml.dump(tables.to_dict(), default_flow_style=False, sort_keys=False))
        return EXIT_VALID

    if not args.files:
        err_console.print("[red]Error: No input files specified[/red]")
        err_console.print("Run [cyan]mdd-validate --help[/cyan] for usage information\n")
        return EXIT_ERRORS

    reports = validate_files(args.files, tables, strict=args.strict, jobs=args.jobs)

    if args.json:
        print(json.dumps([report.to_dict() for report in reports], indent=2, ensure_ascii=False))
    else:
        for report in reports:
            print_report(console, report, verbose=args.verbose)
        if len(reports) > 1:
            print_totals(console, reports)

    return overall_exit_code(reports)


if __name__ == "__main__":
    sys.exit(main())
