"""
otelxray.cli - Command-line interface for otelxray.

This module provides a CLI that converts OTLP/JSON trace files into X-Ray
segment documents, and optionally uploads them.

Usage:
    otelxray <input_file> [--output/-o <file>] [--validate-trace-id]
             [--index-attribute KEY]... [--no-index-all] [--no-activity-names]
             [--send --region <region>] [-v]

Examples:
    otelxray trace.json
    otelxray trace.json -o segments.jsonl --no-index-all --index-attribute http.route
    otelxray trace.json --send --region us-east-1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExportResult

from otelxray import __version__
from otelxray.config import XRayExporterOptions, parse_indexed_attributes
from otelxray.core.converter import SegmentConverter
from otelxray.core.parser import OTLPParser
from otelxray.exporters import XRayExporter


class ExportError(Exception):
    """Raised when X-Ray did not accept the exported segments."""


def parse_args(args: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="otelxray",
        description="Convert OpenTelemetry traces to AWS X-Ray segment documents",
        epilog="Example: otelxray trace.json -o segments.jsonl",
    )

    parser.add_argument(
        "input_file",
        type=str,
        help="Path to the input trace file (OTLP/JSON format)",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file path, one document per line (defaults to stdout)",
    )

    parser.add_argument(
        "--validate-trace-id",
        action="store_true",
        help="Drop spans whose trace id X-Ray would reject",
    )

    parser.add_argument(
        "--index-attribute",
        action="append",
        default=[],
        metavar="KEY",
        help="Attribute to write as an annotation (repeatable, comma separated; "
             "prefix resource attributes with otel.resource.)",
    )

    parser.add_argument(
        "--no-index-all",
        action="store_true",
        help="Only index the attributes given with --index-attribute",
    )

    parser.add_argument(
        "--no-activity-names",
        action="store_true",
        help="Do not add activity_display_name/activity_operation_name annotations",
    )

    parser.add_argument(
        "--send",
        action="store_true",
        help="Upload the segments to X-Ray instead of printing them",
    )

    parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="AWS region used with --send",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def build_options(parsed_args: argparse.Namespace) -> XRayExporterOptions:
    """Map command-line flags onto exporter options."""
    return XRayExporterOptions(
        region_name=parsed_args.region,
        indexed_attributes=parse_indexed_attributes(parsed_args.index_attribute),
        index_all_attributes=not parsed_args.no_index_all,
        index_activity_names=not parsed_args.no_activity_names,
        validate_trace_id=parsed_args.validate_trace_id,
    )


def load_spans(input_path: str) -> List[ReadableSpan]:
    """Load and parse spans from an OTLP/JSON file.

    Args:
        input_path: Path to the input JSON file

    Returns:
        Parsed spans

    Raises:
        FileNotFoundError: If the input file doesn't exist
        json.JSONDecodeError: If the file contains invalid JSON
        ValueError: If the trace format is invalid
    """
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    with open(path, "r", encoding="utf-8") as f:
        json_str = f.read()

    parser = OTLPParser()
    return parser.parse_json(json_str)


def write_output(documents: List[str], output_path: str | None) -> None:
    """Write documents, one per line, to a file or stdout.

    Args:
        documents: Segment documents
        output_path: Path to output file, or None for stdout
    """
    content = "\n".join(documents)
    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
            if documents:
                f.write("\n")
    elif documents:
        print(content)


def send_spans(spans: List[ReadableSpan], options: XRayExporterOptions) -> None:
    """Upload spans to X-Ray.

    Raises:
        ExportError: If the exporter reported a failure
    """
    exporter = XRayExporter(options)
    try:
        result = exporter.export(spans)
    finally:
        exporter.shutdown()
    if result is not SpanExportResult.SUCCESS:
        raise ExportError("X-Ray export failed")


def main(args: List[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed_args = parse_args(args)

        if parsed_args.verbose:
            logging.basicConfig(level=logging.DEBUG)
            print(f"Loading trace from: {parsed_args.input_file}", file=sys.stderr)

        options = build_options(parsed_args)
        spans = load_spans(parsed_args.input_file)

        if parsed_args.verbose:
            print(f"Parsed {len(spans)} spans", file=sys.stderr)

        if parsed_args.send:
            send_spans(spans, options)
            if parsed_args.verbose:
                print(f"Sent {len(spans)} spans to X-Ray", file=sys.stderr)
            return 0

        documents = SegmentConverter(options).convert_many(spans)
        write_output(documents, parsed_args.output)

        if parsed_args.verbose and parsed_args.output:
            print(f"Output written to: {parsed_args.output}", file=sys.stderr)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in input file: {e}", file=sys.stderr)
        return 2

    except ValueError as e:
        print(f"Error: Invalid trace format: {e}", file=sys.stderr)
        return 3

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 4


if __name__ == "__main__":
    sys.exit(main())
