"""Command line entry point for ProFlow.

Usage:
    proflow dump FILE [--json]          Print the structure of a .pro file
    proflow diff EXPECTED ACTUAL        Compare two .pro files
    proflow extract FILE                Print the slide text of a .pro file
    proflow generate --type T ...       Generate a presentation from a template
    proflow bundle --out PATH FILE...   Bundle .pro files into a playlist
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .errors import (
    ContentOverflowError,
    FileWriteError,
    ParseError,
    TemplateInvalidError,
    TemplateNotFoundError,
)
from .logging_config import enable_file_logging, get_logger, log_startup_info, set_console_level
from .models.settings import Settings
from .models.template_type import TemplateType
from .services import container_codec
from .services.document_diff import diff, format_mismatches
from .services.document_dump import document_to_dict, dump_tree, extract_text
from .services.playlist_bundler import BundleEntry, PlaylistBundler
from .services.presentation_generator import GenerationRequest, PresentationGenerator
from .services.template_cache import TemplateCache

logger = get_logger("main")

EXIT_OK = 0
EXIT_DIFFERENT = 1
EXIT_READ_ERROR = 2
EXIT_WRITE_ERROR = 3


def _error(message: str) -> None:
    print(f"error: {message}", file=sys.stderr)


def _read(path: str):
    return container_codec.read_document(path)


def cmd_dump(args: argparse.Namespace) -> int:
    try:
        document = _read(args.file)
    except (ParseError, OSError) as e:
        _error(f"Could not read {args.file}: {e}")
        return EXIT_READ_ERROR

    if args.json:
        print(json.dumps(document_to_dict(document), indent=2, ensure_ascii=False))
    else:
        print(dump_tree(document, title=os.path.basename(args.file)))
    return EXIT_OK


def cmd_diff(args: argparse.Namespace) -> int:
    documents = []
    for path in (args.expected, args.actual):
        try:
            documents.append(_read(path))
        except (ParseError, OSError) as e:
            _error(f"Could not read {path}: {e}")
            return EXIT_READ_ERROR

    mismatches = diff(documents[0], documents[1], include_identifiers=args.include_ids)
    print(format_mismatches(mismatches))
    return EXIT_DIFFERENT if mismatches else EXIT_OK


def cmd_extract(args: argparse.Namespace) -> int:
    try:
        document = _read(args.file)
    except (ParseError, OSError) as e:
        _error(f"Could not read {args.file}: {e}")
        return EXIT_READ_ERROR

    for line in extract_text(document):
        print(line)
    return EXIT_OK


def cmd_generate(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    enable_file_logging()
    log_startup_info()

    if args.input:
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            _error(f"Could not read {args.input}: {e}")
            return EXIT_READ_ERROR
    else:
        text = args.text

    try:
        template_type = TemplateType.from_string(args.type)
        request = GenerationRequest.from_text(args.title, template_type, text, args.caption,
                                              settings=settings)
    except ValueError as e:
        _error(str(e))
        return EXIT_READ_ERROR

    cache = TemplateCache.from_settings(settings)
    if args.templates:
        cache.search_paths.insert(0, args.templates)
    generator = PresentationGenerator(cache, settings)

    out = args.out or settings.get_output_path()
    if not args.out or os.path.isdir(out):
        out = os.path.join(out, f"{args.title}.pro")
    try:
        result = generator.write(request, out)
    except (TemplateNotFoundError, TemplateInvalidError, ContentOverflowError, FileWriteError) as e:
        _error(str(e))
        return EXIT_WRITE_ERROR
    except (ParseError, OSError) as e:
        _error(f"Could not read template: {e}")
        return EXIT_READ_ERROR
    except ValueError as e:
        _error(str(e))
        return EXIT_READ_ERROR

    print(f"Wrote {result.slide_count} slides ({result.size} bytes) to {result.path}")
    return EXIT_OK


def cmd_bundle(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    enable_file_logging()
    log_startup_info()

    entries = []
    for path in args.files:
        try:
            entries.append(BundleEntry.from_file(path))
        except OSError as e:
            _error(f"Could not read {path}: {e}")
            return EXIT_READ_ERROR

    bundler = PlaylistBundler(settings)
    try:
        path = bundler.write_bundle(entries, args.out, args.name)
    except FileWriteError as e:
        _error(str(e))
        return EXIT_WRITE_ERROR

    print(f"Wrote playlist with {len(entries)} entries to {path}")
    return EXIT_OK


def _load_settings(args: argparse.Namespace) -> Settings:
    return Settings.load(args.settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proflow",
        description="Inspect, compare and generate ProPresenter documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  proflow dump song.pro                  Show the document tree
  proflow diff template.pro output.pro   List structural differences
  proflow generate --type song --title "Amazing Grace" --input lyrics.txt --out grace.pro
  proflow bundle --out sunday.proplaylist welcome.pro grace.pro
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show info messages")
    parser.add_argument("--settings", help="Settings file (default: the config directory)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # dump
    sub = subparsers.add_parser("dump", help="Print the structure of a .pro file")
    sub.add_argument("file")
    sub.add_argument("--json", action="store_true", help="Print a JSON structure")
    sub.set_defaults(func=cmd_dump)

    # diff
    sub = subparsers.add_parser("diff", help="Compare two .pro files")
    sub.add_argument("expected")
    sub.add_argument("actual")
    sub.add_argument("--include-ids", action="store_true", help="Also compare identifiers")
    sub.set_defaults(func=cmd_diff)

    # extract
    sub = subparsers.add_parser("extract", help="Print the slide text of a .pro file")
    sub.add_argument("file")
    sub.set_defaults(func=cmd_extract)

    # generate
    sub = subparsers.add_parser("generate", help="Generate a presentation from a template")
    sub.add_argument("--type", required=True, choices=[t.value for t in TemplateType])
    sub.add_argument("--title", required=True)
    source = sub.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Content text")
    source.add_argument("--input", help="File with the content text")
    sub.add_argument("--out", help="Output .pro file or folder (default: the output folder)")
    sub.add_argument("--caption", action="append", default=[],
                     help="Text for the next caption element (repeatable)")
    sub.add_argument("--templates", help="Extra template folder, searched first")
    sub.set_defaults(func=cmd_generate)

    # bundle
    sub = subparsers.add_parser("bundle", help="Bundle .pro files into a playlist")
    sub.add_argument("--out", required=True, help="Output .proplaylist file")
    sub.add_argument("--name", help="Playlist name (default: the file name)")
    sub.add_argument("files", nargs="+")
    sub.set_defaults(func=cmd_bundle)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_console_level(logging.INFO)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_OK
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
