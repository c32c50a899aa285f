"""CLI entry point for the format converter."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ... import __version__
from ...application.capabilities import CapabilityIndex
from ...application.dispatcher import ConversionEngine
from ...application.registry import default_registry
from ...domain.configuration import LOG_LEVELS, load_settings, with_cli_overrides
from ...domain.errors import ConversionError
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions, ConversionRequest
from ...shared.logging import configure_logger, get_logger

# These travel through the engine as latin-1 text when the input carries
# their file signature; anything else is read as UTF-8 text.
BINARY_SIGNATURES = {
    FormatId.DOCUMENT_PDF: b"%PDF-",
    FormatId.SPREADSHEET: b"PK\x03\x04",
    FormatId.COLUMNAR_STORAGE: b"PAR1",
}
BINARY_FORMATS = set(BINARY_SIGNATURES)

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="convert-format",
        description="Convert data, document and script files between formats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  convert-format --input people.csv --to json
  convert-format --input people.csv --output people.yaml
  cat data.json | convert-format --from json --to csv
  convert-format --input notes.md --output notes.pdf
  convert-format --list-formats
  convert-format --targets csv
        """,
    )
    parser.add_argument("--from", dest="source", type=str, help="Source format (detected from --input if omitted)")
    parser.add_argument("--to", dest="target", type=str, help="Target format (detected from --output if omitted)")
    parser.add_argument("--input", dest="input_path", type=str, default="-", help="Input file, or - for stdin")
    parser.add_argument("--output", dest="output_path", type=str, help="Output file (default: stdout)")
    parser.add_argument("--name", type=str, help="Table, sheet or query name used by generated output")
    parser.add_argument("--indent", type=int, help="Indent width for JSON, YAML and XML output")
    parser.add_argument("--config", type=Path, help="JSON or YAML settings file")
    parser.add_argument("--log-level", dest="log_level", choices=LOG_LEVELS, type=str.upper, help="Logging level")
    parser.add_argument("--list-formats", action="store_true", help="List supported formats and exit")
    parser.add_argument("--targets", metavar="FORMAT", type=str, help="List formats reachable from FORMAT and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _list_formats() -> int:
    for descriptor in default_registry().formats():
        extensions = ", ".join(descriptor.extensions)
        print(f"{descriptor.format.value:<10} {descriptor.name:<18} {extensions:<18} {descriptor.description}")
    return 0


def _list_targets(name: str) -> int:
    try:
        source = FormatId.from_string(name)
    except ConversionError as exc:
        print(f"{exc.kind}: {exc.message}", file=sys.stderr)
        return 2
    for descriptor in CapabilityIndex().reachable_descriptors(source):
        print(f"{descriptor.format.value:<10} {descriptor.name}")
    return 0


def _resolve(explicit: Optional[str], path: Optional[str], role: str) -> Optional[FormatId]:
    if explicit:
        try:
            return FormatId.from_string(explicit)
        except ConversionError as exc:
            print(f"{exc.kind}: {exc.message}", file=sys.stderr)
            return None
    if path and path != "-":
        detected = default_registry().detect(path)
        if detected is not None:
            return detected
        print(f"Error: cannot detect the {role} format of '{path}'; pass --{'from' if role == 'source' else 'to'}",
              file=sys.stderr)
        return None
    print(f"Error: the {role} format is required (--{'from' if role == 'source' else 'to'})", file=sys.stderr)
    return None


def _decode(data: bytes, source: FormatId) -> str:
    signature = BINARY_SIGNATURES.get(source)
    if signature is not None and data.lstrip().startswith(signature):
        return data.decode("latin-1")
    return data.decode("utf-8")


def _read_input(path: str, source: FormatId) -> str:
    if path == "-":
        if source in BINARY_FORMATS:
            return _decode(sys.stdin.buffer.read(), source)
        return sys.stdin.read()
    file_path = Path(path)
    logger.info("Reading %s", file_path)
    if source in BINARY_FORMATS:
        return _decode(file_path.read_bytes(), source)
    return file_path.read_text(encoding="utf-8")


def _write_output(path: Optional[str], target: FormatId, text: str) -> None:
    if path is None or path == "-":
        if target in BINARY_FORMATS:
            sys.stdout.flush()
            sys.stdout.buffer.write(text.encode("latin-1"))
            sys.stdout.buffer.flush()
        else:
            sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    file_path = Path(path)
    if target in BINARY_FORMATS:
        file_path.write_bytes(text.encode("latin-1"))
    else:
        file_path.write_text(text, encoding="utf-8")
    logger.info("Wrote %s", file_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
        settings = with_cli_overrides(
            settings, {"name": args.name, "indent": args.indent, "log_level": args.log_level}
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    configure_logger(settings.logging)

    if args.list_formats:
        return _list_formats()
    if args.targets:
        return _list_targets(args.targets)

    source = _resolve(args.source, args.input_path, "source")
    if source is None:
        return 2
    target = _resolve(args.target, args.output_path, "target")
    if target is None:
        return 2

    try:
        content = _read_input(args.input_path, source)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: cannot read input: {exc}", file=sys.stderr)
        return 1

    engine = ConversionEngine(settings=settings)
    result = engine.convert(ConversionRequest(content, source, target, ConversionOptions()))
    if not result.ok:
        print(f"{result.error.kind}: {result.error.message}", file=sys.stderr)
        return 1

    try:
        _write_output(args.output_path, target, result.output or "")
    except OSError as exc:
        print(f"Error: cannot write output: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
