from abc import ABC, abstractmethod
from typing import Any


class MediaGatewayError(Exception):
    """Raised when the pinning gateway rejects or fails a request."""


class MediaStoreGateway(ABC):
    """Port for the content-addressed media store (IPFS pinning worker)."""

    @abstractmethod
    async def upload_file(self, filename: str, content: bytes, content_type: str) -> str:
        """Pin a binary blob and return its CID."""
        ...

    @abstractmethod
    async def upload_json(self, document: dict[str, Any]) -> str:
        """Pin a JSON document and return its CID."""
        ...

    @abstractmethod
    async def unpin(self, cid: str) -> None:
        ...

    @abstractmethod
    async def fetch_json(self, url: str) -> Any:
        """Dereference a retrievable URL that serves a JSON document."""
        ...
