"""
Media bundle lifecycle on the content-addressed store.

A listing's images are pinned individually, then tied together by a manifest
document that is pinned in turn. Only the manifest address is stored on the
ledger; everything else is reached through it.
"""
import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, Field, ValidationError

from src.application.interfaces.media_gateway import MediaGatewayError, MediaStoreGateway
from src.domain.entities.media_bundle import (
    MAX_IMAGES_PER_LISTING,
    ImageUpload,
    ManifestImage,
    MediaBundle,
)

logger = structlog.get_logger(__name__)


class MediaBatchSizeError(ValueError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            f"A listing takes 1 to {MAX_IMAGES_PER_LISTING} images; got {count}."
        )


class MediaUploadError(Exception):
    """The bundle could not be composed; no manifest address was produced."""


class MalformedManifestError(MediaGatewayError):
    pass


class _ManifestImageSchema(BaseModel):
    cid: str = Field(min_length=1)
    url: str = Field(min_length=1)


class _ManifestSchema(BaseModel):
    images: list[_ManifestImageSchema] = Field(min_length=1, max_length=MAX_IMAGES_PER_LISTING)


@dataclass
class ReleaseReport:
    manifest_address: str
    released: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> bool:
        return bool(self.released or self.failed)

    @property
    def complete(self) -> bool:
        return self.attempted and not self.failed


class MediaPipeline:
    """Composes, reads back and releases listing media bundles."""

    def __init__(self, gateway: MediaStoreGateway, retrieval_base_url: str) -> None:
        self._gateway = gateway
        self._retrieval_base_url = retrieval_base_url.rstrip("/")

    def url_for(self, cid: str) -> str:
        return f"{self._retrieval_base_url}/{cid}"

    # -------------------------------------------------------------------------
    # Create path
    # -------------------------------------------------------------------------

    async def compose(self, images: Sequence[ImageUpload]) -> str:
        """Pin every image plus a manifest listing them; return the manifest address.

        Either the whole bundle is produced or MediaUploadError is raised. Images
        pinned before a failure stay pinned and are logged as orphaned.
        """
        if not 1 <= len(images) <= MAX_IMAGES_PER_LISTING:
            raise MediaBatchSizeError(len(images))

        results = await asyncio.gather(
            *(self._gateway.upload_file(i.filename, i.content, i.content_type) for i in images),
            return_exceptions=True,
        )
        uploaded = [r for r in results if isinstance(r, str)]
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(
                "media_image_upload_failed",
                failed=len(failures),
                total=len(images),
                orphaned_cids=uploaded,
                error=str(failures[0]),
            )
            raise MediaUploadError(
                f"{len(failures)} of {len(images)} image uploads failed: {failures[0]}"
            ) from failures[0]

        bundle_images = tuple(ManifestImage(cid=cid, url=self.url_for(cid)) for cid in uploaded)
        manifest = MediaBundle(manifest_address="", images=bundle_images).to_manifest()

        try:
            manifest_cid = await self._gateway.upload_json(manifest)
        except MediaGatewayError as exc:
            logger.error("media_manifest_upload_failed", orphaned_cids=uploaded, error=str(exc))
            raise MediaUploadError(f"Manifest upload failed: {exc}") from exc

        manifest_address = self.url_for(manifest_cid)
        logger.info(
            "media_bundle_composed",
            manifest_address=manifest_address,
            image_count=len(uploaded),
        )
        return manifest_address

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def load(self, manifest_address: str) -> MediaBundle:
        payload = await self._gateway.fetch_json(manifest_address)
        try:
            manifest = _ManifestSchema.model_validate(payload)
        except ValidationError as exc:
            raise MalformedManifestError(f"Manifest at {manifest_address} is malformed: {exc}") from exc

        return MediaBundle(
            manifest_address=manifest_address,
            images=tuple(ManifestImage(cid=i.cid, url=i.url) for i in manifest.images),
        )

    # -------------------------------------------------------------------------
    # Release path
    # -------------------------------------------------------------------------

    @staticmethod
    def resolve_for_release(manifest_address: str) -> str | None:
        """Return the manifest CID (last path segment), or None when there is nothing to release."""
        if not manifest_address or not manifest_address.strip():
            return None
        try:
            parsed = urlparse(manifest_address.strip())
        except ValueError:
            return None
        if not parsed.scheme or not parsed.netloc:
            return None
        return parsed.path.split("/")[-1] or None

    async def release(self, manifest_address: str) -> ReleaseReport:
        """Unpin every image of the bundle, then the manifest itself.

        Best effort: failures are logged and reported, never raised or retried.
        """
        report = ReleaseReport(manifest_address=manifest_address)
        manifest_cid = self.resolve_for_release(manifest_address)
        if manifest_cid is None:
            logger.debug("media_release_skipped", manifest_address=manifest_address)
            return report

        image_cids: list[str] = []
        try:
            image_cids = (await self.load(manifest_address)).image_cids
        except Exception as exc:
            logger.warning(
                "media_manifest_unreadable",
                manifest_address=manifest_address,
                error=str(exc),
            )

        for cid in [*image_cids, manifest_cid]:
            try:
                await self._gateway.unpin(cid)
                report.released.append(cid)
            except Exception as exc:
                logger.error("media_release_failed", cid=cid, error=str(exc))
                report.failed.append(cid)

        logger.info(
            "media_bundle_released",
            manifest_address=manifest_address,
            released=len(report.released),
            failed=len(report.failed),
        )
        return report
