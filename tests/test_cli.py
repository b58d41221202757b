"""Tests for CLI entry point.

Tests the command-line interface and argument parsing.
"""

import json
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import httpx
import pytest

from agcod.cli import CompositeReporter, main, parse_args
from agcod.config import ConfigError
from agcod.issuer import GiftCardIssuer
from agcod.models import ExchangeRecord, ExchangeStatus, IssuerConfig
from agcod.reporters import ConsoleReporter, JsonReporter


@pytest.fixture
def config() -> IssuerConfig:
    return IssuerConfig(
        partner_id="Test",
        access_key="AKIDEXAMPLE",
        secret_key="testsecret",
        host="agcod-v2-gamma.amazon.com",
        base_url="https://agcod-v2-gamma.amazon.com",
    )


def issuer_factory(handler: Callable) -> Callable:
    """Replacement for GiftCardIssuer that sends through a mock transport."""

    def factory(config, reporter=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GiftCardIssuer(config, client=client, reporter=reporter)

    return factory


def claim_code_handler(request: httpx.Request) -> httpx.Response:
    operation = request.url.path.rsplit("/", 1)[-1]
    if operation == "CancelGiftCard":
        return httpx.Response(200, json={"gcId": "GC1", "status": "SUCCESS"})
    if operation == "GetAvailableFunds":
        return httpx.Response(
            200,
            json={"availableFunds": {"amount": 250.0, "currencyCode": "USD"}, "status": "SUCCESS"},
        )
    request_id = json.loads(request.content)["creationRequestId"]
    return httpx.Response(200, json={"gcClaimCode": f"CODE-{request_id[-4:]}"})


class TestParseArgs:
    """Tests for argument parsing."""

    def test_default_args(self):
        """Should have sensible defaults."""
        args = parse_args([])

        assert args.config == "agcod.json"
        assert args.count == 1
        assert args.verbose is False
        assert args.json_output is None
        assert args.cancel is None
        assert args.funds is False

    def test_short_flags(self):
        """Should accept short flags."""
        args = parse_args(["-c", "custom.json", "-n", "3", "-v", "-j", "trace.json"])

        assert args.config == "custom.json"
        assert args.count == 3
        assert args.verbose is True
        assert args.json_output == "trace.json"

    def test_count_must_be_positive(self):
        """Zero codes is rejected by the parser."""
        with pytest.raises(SystemExit):
            parse_args(["-n", "0"])

    def test_cancel_takes_two_values(self):
        args = parse_args(["--cancel", "Test-1", "GC1"])
        assert args.cancel == ["Test-1", "GC1"]

    def test_cancel_and_funds_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--funds", "--cancel", "Test-1", "GC1"])


class TestCompositeReporter:
    """Tests for CompositeReporter delegation."""

    def test_delegates_to_all(self):
        first, second = JsonReporter(), JsonReporter()
        composite = CompositeReporter([first, second])
        record = ExchangeRecord("CreateGiftCard", "t", ExchangeStatus.SUCCESS)

        composite.on_request("CreateGiftCard", "u", {})
        composite.on_response("CreateGiftCard", 200, b"{}")
        composite.on_exchange_complete(record)

        assert first.generate_output()["summary"]["total"] == 1
        assert second.generate_output()["summary"]["total"] == 1


class TestMain:
    """Tests for the main entry point."""

    def test_config_error_exit_code(self, capsys):
        """Configuration errors exit with 2 and print to stderr."""
        with patch("agcod.cli.load_config", side_effect=ConfigError("No configuration found")):
            exit_code = main([])

        assert exit_code == 2
        assert "Configuration error: No configuration found" in capsys.readouterr().err

    def test_malformed_config_file_exit_code(self, tmp_path: Path, capsys):
        """A config file with a wrongly typed value exits with 2."""
        config_file = tmp_path / "agcod.json"
        config_file.write_text(json.dumps({
            "partner_id": "Test",
            "access_key": "AKIDEXAMPLE",
            "secret_key": "testsecret",
            "host": "agcod-v2-gamma.amazon.com",
            "base_url": "https://agcod-v2-gamma.amazon.com",
            "timeout": None,
        }))

        with patch.dict("os.environ", {}, clear=True):
            exit_code = main(["-c", str(config_file)])

        assert exit_code == 2
        assert "timeout" in capsys.readouterr().err

    def test_issues_one_code(self, config, capsys):
        """Default run prints a single claim code and exits 0."""
        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(claim_code_handler)):
            exit_code = main([])

        assert exit_code == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("CODE-")

    def test_issues_several_codes(self, config, capsys):
        """--count issues that many independent codes."""
        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(claim_code_handler)):
            exit_code = main(["-n", "3"])

        assert exit_code == 0
        codes = [line for line in capsys.readouterr().out.splitlines() if line.startswith("CODE-")]
        assert len(codes) == 3

    def test_transport_failure_exit_code(self, config, capsys):
        """Issuance failures exit with 1 and are reported."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(handler)):
            exit_code = main([])

        assert exit_code == 1
        assert "[ERROR]" in capsys.readouterr().out

    def test_json_trace_written(self, config, tmp_path: Path):
        """-j writes a redacted trace of the run."""
        trace = tmp_path / "trace.json"

        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(claim_code_handler)):
            exit_code = main(["-j", str(trace)])

        assert exit_code == 0
        data = json.loads(trace.read_text())
        exchange = data["exchanges"][0]
        assert exchange["operation"] == "CreateGiftCard"
        assert exchange["response_body"]["gcClaimCode"] == "<redacted>"
        assert "Signature=<redacted>" in exchange["request_headers"]["Authorization"]

    def test_funds(self, config, capsys):
        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(claim_code_handler)):
            exit_code = main(["--funds"])

        assert exit_code == 0
        assert "Available funds: 250.0 USD" in capsys.readouterr().out

    def test_cancel(self, config, capsys):
        with patch("agcod.cli.load_config", return_value=config), \
             patch("agcod.cli.GiftCardIssuer", issuer_factory(claim_code_handler)):
            exit_code = main(["--cancel", "Test-1", "GC1"])

        assert exit_code == 0
        assert "GC1: SUCCESS" in capsys.readouterr().out
