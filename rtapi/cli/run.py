"""CLI for measuring endpoints and reporting the results."""

import argparse
import asyncio
import sys
from typing import List, Optional

from ..core.config import check_sources, load_endpoints, load_splunk_settings
from ..core.errors import RtapiError
from ..core.models import EndpointDetails, SplunkSettings
from ..core.runner import EndpointRunner
from ..results.pdf import create_pdf
from ..results.reporters import print_json, print_text
from ..results.splunk import send_to_splunk


def add_output_arguments(parser: argparse.ArgumentParser) -> None:
    """Sink selection flags shared by the run and report commands."""
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        metavar="PDF",
        help="Write an easy to grasp PDF report to this path",
    )
    parser.add_argument(
        "-p",
        "--print",
        dest="print_text",
        action="store_true",
        help="Print technical results to the terminal",
    )
    parser.add_argument(
        "-j",
        "--json",
        dest="print_json",
        action="store_true",
        help="Print technical results as JSON to the terminal",
    )
    parser.add_argument(
        "-s",
        "--splunk",
        type=str,
        metavar="SETTINGS",
        help="Send JSON results to Splunk using a settings file or inline JSON",
    )


def selected_outputs(args: argparse.Namespace) -> List[bool]:
    return [bool(args.output), args.print_text, args.print_json, bool(args.splunk)]


async def emit_reports(
    endpoints: List[EndpointDetails],
    args: argparse.Namespace,
    splunk_settings: Optional[SplunkSettings] = None,
) -> None:
    """Write every requested report in a fixed order: text, PDF, JSON, forward."""
    if args.print_text:
        print_text(endpoints)
    if args.output:
        await create_pdf(endpoints, args.output)
    if args.print_json:
        print_json(endpoints)
    if splunk_settings is not None:
        await send_to_splunk(endpoints, splunk_settings)


async def run(args: argparse.Namespace) -> List[EndpointDetails]:
    """Resolve configuration, measure every endpoint and emit the reports."""
    check_sources(args.file, args.data, selected_outputs(args))
    endpoints = load_endpoints(file=args.file, data=args.data)
    splunk_settings = load_splunk_settings(args.splunk) if args.splunk else None

    runner = EndpointRunner(show_progress=not args.quiet)
    await runner.run(endpoints)

    await emit_reports(endpoints, args, splunk_settings)
    return endpoints


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtapi run",
        description="Measure API endpoint latency and report whether it is real time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Measure the endpoints in a YAML file and print a text report
  rtapi run --file endpoints.yaml --print

  # Inline endpoint, PDF report, no progress bar
  rtapi run --data '[{"target": {"url": "https://example.com/api"}}]' \\
      --output report.pdf --quiet

  # Save JSON results for later and forward them to Splunk
  rtapi run -f endpoints.json -j -s splunk.yaml > results.json
        """,
    )
    parser.add_argument(
        "-f",
        "--file",
        type=str,
        help="Select a JSON or YAML file to load",
    )
    parser.add_argument(
        "-d",
        "--data",
        type=str,
        help="Input API parameters directly as a JSON string",
    )
    add_output_arguments(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Don't show progress bar",
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the run command."""
    args = build_parser().parse_args(argv)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nRun interrupted by user", file=sys.stderr)
        sys.exit(130)
    except RtapiError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
