"""HTTP client for the signing agent (wallet / keyring relay that holds the key)."""

from typing import Any

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, Field

from src.application.interfaces.ledger_client import (
    ExecuteResult,
    LedgerExecuteError,
    SigningUnavailableError,
)
from src.config import settings
from src.domain.pricing import Coin

logger = structlog.get_logger(__name__)


class _ExecuteResponse(BaseModel):
    transaction_hash: str | None = Field(
        default=None,
        validation_alias=AliasChoices("transaction_hash", "transactionHash", "txhash"),
    )


class SigningAgentClient:
    """Forwards execute messages to the signing agent, which signs and broadcasts them."""

    def __init__(
        self,
        base_url: str = settings.signer_url,
        api_key: str = settings.signer_api_key,
        gas_limit: str = settings.gas_limit,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._gas_limit = gas_limit
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "x-api-key": api_key,
            "Content-Type": "application/json",
        }

    async def execute(
        self,
        sender: str,
        contract_address: str,
        msg: dict[str, Any],
        funds: list[Coin] | None = None,
    ) -> ExecuteResult:
        """
        POST /execute → {"transaction_hash": "..."}
        """
        payload = {
            "sender": sender,
            "contract": contract_address,
            "msg": msg,
            "funds": [coin.to_dict() for coin in funds or []],
            "gas": self._gas_limit,
        }
        message_name = next(iter(msg), "unknown")

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self._base_url}/execute",
                    json=payload,
                    headers=self._headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                logger.error(
                    "execute_rejected",
                    message=message_name,
                    status_code=status_code,
                    response=exc.response.text,
                )
                if status_code in (401, 403):
                    raise SigningUnavailableError(
                        f"Signing agent refused to sign for {sender}: {exc.response.text}"
                    ) from exc
                raise LedgerExecuteError(
                    f"{message_name} rejected ({status_code}): {exc.response.text}"
                ) from exc
            except httpx.ConnectError as exc:
                logger.error("signing_agent_unreachable", error=str(exc))
                raise SigningUnavailableError(f"Signing agent unreachable: {exc}") from exc
            except httpx.RequestError as exc:
                logger.error("execute_transport_failed", message=message_name, error=str(exc))
                raise LedgerExecuteError(f"Failed to submit {message_name}: {exc}") from exc

        try:
            result = _ExecuteResponse.model_validate(response.json())
        except ValueError:
            result = _ExecuteResponse()

        logger.info(
            "execute_submitted",
            message=message_name,
            sender=sender,
            transaction_hash=result.transaction_hash,
        )
        return ExecuteResult(transaction_hash=result.transaction_hash)
