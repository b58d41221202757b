"""JSON reporter for structured exchange traces.

Collects a redacted record of every exchange and writes them to a file
for later inspection. Authorization signatures and claim codes never
reach the trace.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from agcod.reporters.base import Reporter
from agcod.models import ExchangeRecord, ExchangeStatus


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write the trace to on flush()
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path
        self._records: list[ExchangeRecord] = []

    def on_request(self, operation: str, url: str, headers: dict[str, str]) -> None:
        """No-op; headers are taken from the completed record."""
        pass

    def on_response(self, operation: str, status_code: int, body: bytes) -> None:
        """No-op; the raw body is not traced."""
        pass

    def on_exchange_complete(self, record: ExchangeRecord) -> None:
        self._records.append(record)

    def generate_output(self) -> dict:
        """Build the trace document from the collected records."""
        exchanges = []
        for record in self._records:
            entry = {
                "operation": record.operation,
                "timestamp": record.timestamp,
                "status": record.status.value,
                "status_code": record.status_code,
                "request_headers": record.request_headers,
                "response_body": record.response_body,
            }
            if record.error_message:
                entry["error"] = record.error_message
            exchanges.append(entry)

        succeeded = sum(1 for r in self._records if r.status == ExchangeStatus.SUCCESS)

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "exchanges": exchanges,
            "summary": {
                "total": len(self._records),
                "succeeded": succeeded,
                "failed": len(self._records) - succeeded,
            },
        }

    def flush(self) -> dict:
        """Write the trace to output_path (if set) and return it."""
        output = self.generate_output()

        if self.output_path:
            path = Path(self.output_path)
            # Create parent directories if needed
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(output, f, indent=2)

        return output
