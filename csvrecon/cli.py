from __future__ import annotations

import argparse
import logging
import signal
import threading
from pathlib import Path

from .config import ConfigurationError, load_match_rule
from .logsetup import RunLog, log_file_path
from .models import PairingMode, ReconciliationConfig
from .pipeline import SourceFolderNotFoundError, run_reconciliation

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile delimited files between two folders")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run", help="Execute the reconciliation workflow")
    run_parser.add_argument(
        "--folder-a",
        type=Path,
        default=Path("samples/FolderA"),
        help="Folder holding the side A files.",
    )
    run_parser.add_argument(
        "--folder-b",
        type=Path,
        default=Path("samples/FolderB"),
        help="Folder holding the side B files.",
    )
    run_parser.add_argument(
        "--config",
        type=Path,
        default=Path("samples/config/case-insensitive-match.json"),
        help="JSON document describing the matching rule.",
    )
    run_parser.add_argument(
        "--output",
        type=Path,
        default=Path("output"),
        help="Directory that will receive the reconciliation artefacts.",
    )
    run_parser.add_argument(
        "--delimiter",
        default=",",
        help="Single field delimiter character.",
    )
    run_parser.add_argument(
        "--no-header",
        action="store_true",
        help="Treat the first line as data; columns are named Column1..ColumnN.",
    )
    run_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in PairingMode],
        default=PairingMode.SINGLE_FILE.value,
        help="Pair files by name (SingleFile) or compare every file with every other (AllFile).",
    )
    run_parser.add_argument(
        "--parallelism",
        type=int,
        default=0,
        help="Maximum file pairs processed at once; 0 uses the CPU count.",
    )
    run_parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for the run log file. Defaults to the output directory.",
    )
    run_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages.",
    )

    return parser


def _delimiter(raw: str) -> str:
    return "\t" if raw in {"\\t", "tab"} else raw


def _run(args: argparse.Namespace) -> int:
    cancel_event = threading.Event()

    def _request_cancel(signum, frame) -> None:
        LOGGER.warning("Cancellation requested; finishing in-flight file pairs")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, _request_cancel)
    try:
        config = ReconciliationConfig(
            folder_a=args.folder_a,
            folder_b=args.folder_b,
            output_folder=args.output,
            match_rule=load_match_rule(args.config),
            delimiter=_delimiter(args.delimiter),
            has_header=not args.no_header,
            pairing_mode=PairingMode(args.mode),
            parallelism=args.parallelism,
        )
        summary = run_reconciliation(config, cancel_event=cancel_event)
    except (ConfigurationError, SourceFolderNotFoundError) as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIGURATION
    except Exception:
        LOGGER.exception("Reconciliation failed")
        return EXIT_FAILURE
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if summary.cancelled:
        LOGGER.warning("Operation was cancelled")
        return EXIT_CANCELLED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        log_dir = args.log_dir or args.output
        level = logging.DEBUG if args.verbose else logging.INFO
        with RunLog(log_file_path(log_dir), level=level):
            LOGGER.info("=== CSV Reconciliation Tool ===")
            return _run(args)

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover - exercised via CLI entry point
    raise SystemExit(main())
