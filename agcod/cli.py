"""Command-line interface for the gift-card issuer.

Provides argument parsing and the main entry point for issuing claim
codes, cancelling cards and checking available funds.
"""

import argparse
import asyncio
import sys
from typing import Optional

from agcod.config import ConfigError, load_config
from agcod.issuer import GiftCardIssuer, IssuanceError
from agcod.models import ExchangeRecord
from agcod.reporters import ConsoleReporter, JsonReporter, Reporter


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_request(self, operation: str, url: str, headers: dict[str, str]) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_request(operation, url, headers)

    def on_response(self, operation: str, status_code: int, body: bytes) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_response(operation, status_code, body)

    def on_exchange_complete(self, record: ExchangeRecord) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_exchange_complete(record)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="agcod",
        description="Issue gift-card claim codes through the incentives API",
    )

    parser.add_argument(
        "-c", "--config",
        default="agcod.json",
        help="Path to configuration file (default: agcod.json)",
    )

    parser.add_argument(
        "-n", "--count",
        type=positive_int,
        default=1,
        help="Number of claim codes to issue (default: 1)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show redacted request headers and response status",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write a redacted JSON trace of all exchanges to file",
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--cancel",
        nargs=2,
        metavar=("REQUEST_ID", "GC_ID"),
        help="Cancel a gift card by creation request ID and gift card ID",
    )
    action.add_argument(
        "--funds",
        action="store_true",
        help="Show the funds available on the partner account",
    )

    return parser.parse_args(argv)


async def issue_codes(issuer: GiftCardIssuer, count: int) -> tuple[list[str], list[IssuanceError]]:
    """Issue ``count`` codes concurrently.

    Returns:
        Tuple of (claim codes, errors). Errors other than IssuanceError
        propagate.
    """
    async with issuer:
        results = await asyncio.gather(
            *(issuer.generate() for _ in range(count)),
            return_exceptions=True,
        )

    codes: list[str] = []
    errors: list[IssuanceError] = []
    for result in results:
        if isinstance(result, IssuanceError):
            errors.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            codes.append(result)
    return codes, errors


async def run_command(args: argparse.Namespace, issuer: GiftCardIssuer, console: ConsoleReporter) -> int:
    """Run the selected action and return an exit code."""
    if args.funds:
        async with issuer:
            try:
                console.show_funds(await issuer.available_funds())
            except IssuanceError:
                return 1
        return 0

    if args.cancel:
        creation_request_id, gc_id = args.cancel
        async with issuer:
            try:
                console.show_cancel(await issuer.cancel(creation_request_id, gc_id))
            except IssuanceError:
                return 1
        return 0

    codes, errors = await issue_codes(issuer, args.count)
    console.show_claim_codes(codes)
    return 1 if errors else 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for issuance failures, 2 for
        configuration errors
    """
    args = parse_args(argv)

    console = ConsoleReporter(verbose=args.verbose)
    json_reporter = JsonReporter(output_path=args.json_output) if args.json_output else None
    reporter: Reporter = console
    if json_reporter:
        reporter = CompositeReporter([console, json_reporter])

    try:
        config = load_config(args.config)
        issuer = GiftCardIssuer(config, reporter=reporter)
        exit_code = asyncio.run(run_command(args, issuer, console))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if json_reporter:
        json_reporter.flush()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
