"""Command-line interface for runledger.

Provides commands for working with written reports.

Usage:
    # Open a written report in the browser
    runledger show runledger-report

    # Upload a written report
    runledger upload runledger-report --endpoint https://reports.example.com --token $TOKEN

    # Upload using a reporter config file and environment variables
    runledger upload --config runledger.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from runledger_core.errors import ReportFormatError, UploadError

from runledger_report.config import DEFAULT_OUTPUT_FOLDER, load_reporter_options
from runledger_report.uploader import HttpReportUploader
from runledger_report.viewer import open_report
from runledger_report.writer import read_report


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def cmd_show(args: argparse.Namespace) -> int:
    """Open a written report in the browser."""
    try:
        opened = open_report(Path(args.folder))
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 1
    if not opened:
        print(f"Could not launch a browser for {args.folder}")
        return 1
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """Upload a written report."""
    try:
        options = load_reporter_options(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    endpoint = args.endpoint or options.endpoint
    token = args.token or options.token
    if not endpoint or not token:
        print("Error: both an endpoint and an access token are required")
        return 1

    folder = Path(args.folder) if args.folder else Path(options.output_folder)
    try:
        report, attachments = read_report(folder)
    except ReportFormatError as exc:
        print(f"Error: {exc}")
        return 1

    uploader = HttpReportUploader(endpoint, token)
    try:
        asyncio.run(uploader.upload(report.to_dict(), attachments))
    except UploadError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Uploaded {folder} ({len(attachments)} attachments)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="runledger report CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # show command
    show_parser = subparsers.add_parser("show", help="Open a written report")
    show_parser.add_argument(
        "folder", nargs="?", default=DEFAULT_OUTPUT_FOLDER,
        help=f"Report folder (default: {DEFAULT_OUTPUT_FOLDER})"
    )

    # upload command
    upload_parser = subparsers.add_parser("upload", help="Upload a written report")
    upload_parser.add_argument(
        "folder", nargs="?",
        help="Report folder (default: the configured output folder)"
    )
    upload_parser.add_argument("--endpoint", help="Upload service URL")
    upload_parser.add_argument("--token", help="Upload access token")
    upload_parser.add_argument("--config", "-c", help="Reporter config YAML file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.debug)

    if args.command == "show":
        return cmd_show(args)
    elif args.command == "upload":
        return cmd_upload(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
