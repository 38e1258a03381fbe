from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from src.domain.pricing import Coin


class LedgerError(Exception):
    """Base class for failures talking to the ledger contract."""


class SigningUnavailableError(LedgerError):
    """No signing identity is available, so no execute call can be issued."""


class LedgerQueryError(LedgerError):
    """A read-only smart query failed."""


class LedgerNotFoundError(LedgerQueryError):
    """The contract has no record for the queried key."""


class MalformedLedgerResponseError(LedgerQueryError):
    """The contract answered, but not in the shape its message schema requires."""

    def __init__(self, message_name: str, detail: str) -> None:
        self.message_name = message_name
        super().__init__(f"Malformed response to {message_name}: {detail}")


class LedgerExecuteError(LedgerError):
    """A state-changing call was rejected by the contract or never reached it."""


@dataclass(frozen=True)
class ExecuteResult:
    transaction_hash: str | None = None


class LedgerClient(ABC):
    """Port for smart queries and signed execute calls against a contract address."""

    @abstractmethod
    async def query(self, contract_address: str, msg: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    async def execute(
        self,
        sender: str,
        contract_address: str,
        msg: dict[str, Any],
        funds: list[Coin] | None = None,
    ) -> ExecuteResult:
        ...
