# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from kycstatus.app import lookup_kyc_statuses
from kycstatus.config import ConfigurationError, configure_logging
from kycstatus.domain.badges import describe_badge

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from types import FrameType

    from kycstatus.domain.status import StatusInfo

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Look up client KYC verification statuses")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    lookup = subparsers.add_parser("lookup", help="Resolve KYC statuses for client ids")
    lookup.add_argument(
        "client_ids",
        nargs="+",
        type=_parse_client_id,
        help="Fineract client ids",
    )
    lookup.add_argument(
        "--details",
        action="store_true",
        help="Include document counts and tooltips in the output",
    )

    return parser.parse_args(list(argv))


def _parse_client_id(value: str) -> int:
    try:
        client_id = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid client id: {value}") from exc
    if client_id <= 0:
        raise argparse.ArgumentTypeError(f"Client ids must be positive: {value}")
    return client_id


def _print_statuses(
    client_ids: Sequence[int],
    statuses: Mapping[int, StatusInfo],
    *,
    details: bool,
) -> None:
    for client_id in client_ids:
        status = statuses.get(client_id)
        badge = describe_badge(status, show_details=details)
        kind = status.kind if status is not None else "unknown"
        line = f"{client_id}\t{kind}\t{badge.label}"
        if details:
            line = f"{line}\t{badge.tooltip}"
        print(line)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "lookup":
            client_ids = list(dict.fromkeys(parsed_args.client_ids))
            statuses = lookup_kyc_statuses(client_ids)
            _print_statuses(client_ids, statuses, details=parsed_args.details)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during KYC lookup")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
