"""CLI for re-rendering saved JSON results without probing anything."""

import argparse
import asyncio
import sys
from typing import List, Optional

from ..core.config import load_endpoints, load_splunk_settings
from ..core.errors import ConfigError, RtapiError
from ..core.models import EndpointDetails
from .run import add_output_arguments, emit_reports, selected_outputs


async def report(args: argparse.Namespace) -> List[EndpointDetails]:
    """Load results saved by ``rtapi run --json`` and emit the requested reports."""
    if not any(selected_outputs(args)):
        raise ConfigError("You did not specify any type of output")

    endpoints = load_endpoints(file=args.results, with_metrics=True)
    missing = [e.url for e in endpoints if e.metrics is None]
    if missing:
        raise ConfigError(
            f"No metrics found for {', '.join(missing)}; "
            "expected the output of 'rtapi run --json'"
        )
    splunk_settings = load_splunk_settings(args.splunk) if args.splunk else None

    await emit_reports(endpoints, args, splunk_settings)
    return endpoints


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtapi report",
        description="Render reports from results saved with 'rtapi run --json'",
    )
    parser.add_argument(
        "results",
        type=str,
        help="JSON file written by 'rtapi run --json'",
    )
    add_output_arguments(parser)
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the report command."""
    args = build_parser().parse_args(argv)

    try:
        asyncio.run(report(args))
    except KeyboardInterrupt:
        print("\nReport interrupted by user", file=sys.stderr)
        sys.exit(130)
    except RtapiError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
