"""Ledger client for a CosmWasm contract: LCD smart queries plus a signing agent."""

import base64
import json
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from src.application.interfaces.ledger_client import (
    ExecuteResult,
    LedgerClient,
    LedgerNotFoundError,
    LedgerQueryError,
    MalformedLedgerResponseError,
    SigningUnavailableError,
)
from src.config import settings
from src.domain.pricing import Coin
from src.infrastructure.external_services.signing_agent_client import SigningAgentClient

logger = structlog.get_logger(__name__)


def encode_query(msg: dict[str, Any]) -> str:
    raw = json.dumps(msg, separators=(",", ":")).encode()
    return quote(base64.b64encode(raw).decode(), safe="")


class CosmWasmLedgerClient(LedgerClient):
    """
    Reads go straight to the chain's LCD REST endpoint; writes are handed to
    the signing agent. Without a signing agent the client is read-only.
    """

    def __init__(
        self,
        lcd_url: str = settings.lcd_url,
        signer: SigningAgentClient | None = None,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._lcd_url = lcd_url.rstrip("/")
        self._signer = signer
        self._timeout = timeout
        self._transport = transport

    async def query(self, contract_address: str, msg: dict[str, Any]) -> Any:
        """
        GET /cosmwasm/wasm/v1/contract/{addr}/smart/{b64} → {"data": {...}}
        """
        message_name = next(iter(msg), "unknown")
        url = f"{self._lcd_url}/cosmwasm/wasm/v1/contract/{contract_address}/smart/{encode_query(msg)}"

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                body = exc.response.text
                if exc.response.status_code == 404 or "not found" in body.lower():
                    raise LedgerNotFoundError(f"{message_name}: not found") from exc
                logger.error(
                    "ledger_query_failed",
                    message=message_name,
                    status_code=exc.response.status_code,
                    response=body,
                )
                raise LedgerQueryError(
                    f"{message_name} returned {exc.response.status_code}: {body}"
                ) from exc
            except httpx.RequestError as exc:
                logger.error("ledger_connection_failed", message=message_name, error=str(exc))
                raise LedgerQueryError(f"Failed to reach LCD for {message_name}: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedLedgerResponseError(message_name, "response is not JSON") from exc
        if not isinstance(body, dict) or "data" not in body:
            raise MalformedLedgerResponseError(message_name, "missing 'data' envelope")

        logger.debug("ledger_query_completed", message=message_name)
        return body["data"]

    async def execute(
        self,
        sender: str,
        contract_address: str,
        msg: dict[str, Any],
        funds: list[Coin] | None = None,
    ) -> ExecuteResult:
        if self._signer is None:
            raise SigningUnavailableError("No signing agent configured; the ledger client is read-only.")
        return await self._signer.execute(sender, contract_address, msg, funds)
