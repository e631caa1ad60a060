"""
Command line interface for markport.

Subcommands:
    parse      Import a markdown file and print the document tree as JSON
    export     Convert a JSON document tree back to markdown
    verify     Compare two JSON trees and report round-trip differences
    roundtrip  Export and reimport a file, then report the differences
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import config
from .export import ExportSettings, export_markdown
from .importers import ImportService, file_name_to_title
from .models import Document, ImportRequest, ParseOptions
from .parsing import parse_markdown
from .sidecar import generate_sidecar
from .verification import round_trip_markdown, verify_round_trip


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure logging for the application."""
    level_name = (level or config.get("logging.level", "INFO")).upper()
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = log_file or config.log_filename

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=format_str,
        handlers=handlers
    )


def _read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _read_tree(path: str) -> Document:
    """Load a JSON document tree from disk."""
    return Document.model_validate(json.loads(_read_text(path)))


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding='utf-8')
        logging.info(f"Wrote {output}")
    else:
        print(text)


def _parse_options(args: argparse.Namespace) -> ParseOptions:
    options = ParseOptions.from_config()
    return options.model_copy(update={
        "parse_semantics": options.parse_semantics and not args.no_semantics,
        "strip_frontmatter": options.strip_frontmatter and not args.keep_frontmatter,
    })


def command_parse(args: argparse.Namespace) -> int:
    request = ImportRequest(
        markdown_content=_read_text(args.file),
        sidecar_content=_read_text(args.sidecar) if args.sidecar else None,
        file_name=Path(args.file).name,
    )
    result = ImportService(options=_parse_options(args)).import_file(request)

    for warning in result.warnings:
        location = f" (line {warning.line})" if warning.line else ""
        logging.warning(f"{warning.code}{location}: {warning.message}")

    if not result.success:
        logging.error(f"Import failed: {result.error}")
        return 1

    _write_output(json.dumps(result.tree.to_dict(), indent=2, ensure_ascii=False), args.output)
    return 0


def command_export(args: argparse.Namespace) -> int:
    tree = _read_tree(args.file)
    settings = ExportSettings.from_config()
    if args.plain:
        settings = settings.model_copy(update={"preserve_semantics": False})

    sidecar = None
    if args.sidecar_out:
        title = file_name_to_title(Path(args.file).name) or ""
        sidecar = generate_sidecar(tree, title=title)

    markdown, sidecar_json = export_markdown(tree, settings, sidecar)
    _write_output(markdown, args.output)
    if sidecar_json:
        Path(args.sidecar_out).write_text(sidecar_json, encoding='utf-8')
        logging.info(f"Wrote sidecar {args.sidecar_out}")
    return 0


def command_verify(args: argparse.Namespace) -> int:
    report = verify_round_trip(_read_tree(args.original), _read_tree(args.reimported))
    print(report.summary)
    return 1 if report.semantic_count else 0


def command_roundtrip(args: argparse.Namespace) -> int:
    if args.file.lower().endswith(".json"):
        tree = _read_tree(args.file)
    else:
        tree = parse_markdown(_read_text(args.file)).tree

    markdown, _, report = round_trip_markdown(tree)
    if args.show_markdown:
        print(markdown)
        print()
    print(report.summary)
    return 1 if report.semantic_count else 0


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="markport",
        description="markport - markdown import, export and round-trip verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  markport parse note.md                            # Print the document tree
  markport parse note.md --sidecar note.meta.json   # Restore tag ids and colors
  markport export note.json --sidecar-out note.meta.json
  markport verify original.json reimported.json     # Exit code 1 on data loss
  markport roundtrip note.md
        """
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"markport {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse markdown into a JSON document tree")
    parse_cmd.add_argument("file", help="Markdown file to parse")
    parse_cmd.add_argument("--sidecar", help="Matching .meta.json sidecar file")
    parse_cmd.add_argument("--no-semantics", action="store_true", help="Ignore tag and wiki-link envelopes")
    parse_cmd.add_argument("--keep-frontmatter", action="store_true", help="Parse frontmatter as content")
    parse_cmd.add_argument("-o", "--output", help="Write the tree to this file instead of stdout")
    parse_cmd.set_defaults(handler=command_parse)

    export_cmd = subparsers.add_parser("export", help="Export a JSON document tree to markdown")
    export_cmd.add_argument("file", help="JSON document tree")
    export_cmd.add_argument("--plain", action="store_true", help="Do not embed tag and wiki-link metadata")
    export_cmd.add_argument("--sidecar-out", help="Also write a .meta.json sidecar to this path")
    export_cmd.add_argument("-o", "--output", help="Write the markdown to this file instead of stdout")
    export_cmd.set_defaults(handler=command_export)

    verify_cmd = subparsers.add_parser("verify", help="Compare an original tree with a reimported tree")
    verify_cmd.add_argument("original", help="Original JSON document tree")
    verify_cmd.add_argument("reimported", help="Reimported JSON document tree")
    verify_cmd.set_defaults(handler=command_verify)

    roundtrip_cmd = subparsers.add_parser("roundtrip", help="Export and reimport a file and report differences")
    roundtrip_cmd.add_argument("file", help="Markdown file or JSON document tree")
    roundtrip_cmd.add_argument("--show-markdown", action="store_true", help="Print the exported markdown")
    roundtrip_cmd.set_defaults(handler=command_roundtrip)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(args.log_level)

    try:
        return args.handler(args)
    except (OSError, ValueError) as e:
        logging.error(f"{args.command} failed: {e}")
        return 1
