"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agcod.models import ExchangeRecord


class Reporter(ABC):
    """Abstract base class for exchange observers.

    Headers passed to reporters are already redacted. Raw response bodies
    may contain claim codes; implementations decide what to keep.
    """

    @abstractmethod
    def on_request(self, operation: str, url: str, headers: dict[str, str]) -> None:
        """Called right before a signed request is sent."""
        pass

    @abstractmethod
    def on_response(self, operation: str, status_code: int, body: bytes) -> None:
        """Called when a response has been received."""
        pass

    @abstractmethod
    def on_exchange_complete(self, record: "ExchangeRecord") -> None:
        """Called once per exchange, whether it succeeded or failed."""
        pass
