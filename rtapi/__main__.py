"""Main entry point for rtapi.

Usage:
    python -m rtapi run --file endpoints.yaml --print
    python -m rtapi run --data '[{"target": {"url": "http://localhost:8080"}}]' --json
    python -m rtapi run -f endpoints.json -o report.pdf -s splunk.yaml --quiet
    python -m rtapi report results.json --output report.pdf
"""

import sys

from . import __version__


def main():
    """Main entry point that dispatches to subcommands."""
    if len(sys.argv) < 2:
        print_help()
        sys.exit(1)

    command = sys.argv[1]

    if command in ["-h", "--help", "help"]:
        print_help()
        sys.exit(0)

    if command in ["-v", "--version", "version"]:
        print(f"rtapi {__version__}")
        sys.exit(0)

    argv = sys.argv[2:]

    if command == "run":
        from .cli.run import main as run_main

        run_main(argv)
    elif command == "report":
        from .cli.report import main as report_main

        report_main(argv)
    else:
        print(f"Unknown command: {command}")
        print_help()
        sys.exit(1)


def print_help():
    """Print help message."""
    print(
        f"""Real-time API latency analyzer {__version__}

Create a PDF report and HDR histogram of your APIs.

Usage: rtapi <command> [options]

Commands:
    run       Measure the configured endpoints and report the results
    report    Render reports from results saved with 'rtapi run --json'

Examples:
    # Measure endpoints from a YAML file and print a text report
    rtapi run --file endpoints.yaml --print

    # Measure an inline endpoint and write a PDF report
    rtapi run --data '[{{"target": {{"method": "GET", "url": "http://localhost:8080"}}}}]' -o report.pdf

    # Turn saved JSON results into a PDF
    rtapi report results.json --output report.pdf

For command-specific help:
    rtapi <command> --help
"""
    )


if __name__ == "__main__":
    main()
