"""HTTP client for the IPFS pinning worker."""

from typing import Any

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from src.application.interfaces.media_gateway import MediaGatewayError, MediaStoreGateway
from src.config import settings

logger = structlog.get_logger(__name__)


class _PinResponse(BaseModel):
    # The worker forwards Pinata's body untouched, which names the CID "IpfsHash"
    cid: str = Field(min_length=1, validation_alias=AliasChoices("cid", "IpfsHash"))


class PinningGatewayClient(MediaStoreGateway):
    """Thin HTTP wrapper around the pinning worker's upload / unpin endpoints."""

    def __init__(
        self,
        base_url: str = settings.media_gateway_url,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def upload_file(self, filename: str, content: bytes, content_type: str) -> str:
        """
        POST /upload (multipart, field "file") → {"cid": "..."}
        """
        cid = await self._pin(
            "upload_file",
            f"{self._base_url}/upload",
            files={"file": (filename, content, content_type)},
        )
        logger.info("media_file_pinned", filename=filename, cid=cid, size=len(content))
        return cid

    async def upload_json(self, document: dict[str, Any]) -> str:
        """
        POST /upload/json → {"cid": "..."}
        """
        cid = await self._pin("upload_json", f"{self._base_url}/upload/json", json=document)
        logger.info("media_json_pinned", cid=cid)
        return cid

    async def unpin(self, cid: str) -> None:
        """
        DELETE /unpin/{cid}
        """
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.delete(f"{self._base_url}/unpin/{cid}")
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise MediaGatewayError(
                    f"Unpin of {cid} failed: {exc.response.status_code} {exc.response.text}"
                ) from exc
            except httpx.RequestError as exc:
                raise MediaGatewayError(f"Failed to reach pinning gateway: {exc}") from exc
        logger.info("media_unpinned", cid=cid)

    async def fetch_json(self, url: str) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                raise MediaGatewayError(
                    f"Fetching {url} failed: {exc.response.status_code}"
                ) from exc
            except httpx.RequestError as exc:
                raise MediaGatewayError(f"Failed to reach {url}: {exc}") from exc
            except ValueError as exc:
                raise MediaGatewayError(f"{url} did not return JSON") from exc

    async def _pin(self, operation: str, url: str, **request_kwargs: Any) -> str:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, **request_kwargs)
                response.raise_for_status()
                return _PinResponse.model_validate(response.json()).cid
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "media_pin_failed",
                    operation=operation,
                    status_code=exc.response.status_code,
                    response=exc.response.text,
                )
                raise MediaGatewayError(
                    f"Pinning gateway returned {exc.response.status_code}: {exc.response.text}"
                ) from exc
            except httpx.RequestError as exc:
                logger.error("media_gateway_connection_failed", operation=operation, error=str(exc))
                raise MediaGatewayError(f"Failed to reach pinning gateway: {exc}") from exc
            except (ValidationError, ValueError) as exc:
                raise MediaGatewayError(f"Pinning gateway returned no CID: {exc}") from exc
