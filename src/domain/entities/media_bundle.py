from dataclasses import dataclass

MAX_IMAGES_PER_LISTING = 5


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ManifestImage:
    cid: str
    url: str


@dataclass(frozen=True)
class MediaBundle:
    """
    The images of one listing, addressed by the manifest document that lists them.

    Built once when the listing is created and never updated afterwards.
    """

    manifest_address: str
    images: tuple[ManifestImage, ...]

    @property
    def image_cids(self) -> list[str]:
        return [image.cid for image in self.images]

    @property
    def image_urls(self) -> list[str]:
        return [image.url for image in self.images]

    def to_manifest(self) -> dict:  # type: ignore[type-arg]
        return {"images": [{"cid": image.cid, "url": image.url} for image in self.images]}
