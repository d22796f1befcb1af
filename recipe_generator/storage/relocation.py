"""Relocation of generated images into durable storage.

Generated image URLs expire after a short time. The relocation service
downloads the image, checks it, optionally compresses it, and hands the bytes
to an ImageStore that returns a permanent URL.

Core Functions:
- validate_image_format(): Check PNG/JPEG/WEBP from magic bytes
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- compress_image(): Re-encode as progressive JPEG (Pillow)

Classes:
- ImageStore / ImageRelocationService: the contracts the pipeline depends on
- LocalImageStore: directory-backed store
- StorageImageRelocationService: download -> validate -> compress -> store
"""

import asyncio
import uuid
from io import BytesIO
from pathlib import Path
from typing import Optional, Protocol

import aiohttp
import filetype
from PIL import Image

from recipe_generator.utils.config import Config
from recipe_generator.utils.errors import RelocationError
from recipe_generator.utils.logger import logger


ALLOWED_IMAGE_EXTENSIONS = ("png", "jpg", "webp")


class ImageStore(Protocol):
    async def save(self, data: bytes, extension: str) -> str:
        """Persist image bytes and return their permanent URL."""
        ...


class ImageRelocationService(Protocol):
    async def relocate(self, source_url: str) -> str:
        """Copy a transient image URL into durable storage and return the permanent URL.

        Raises:
            RelocationError: If the source is unreachable or the storage write fails.
        """
        ...


def validate_image_format(image_bytes: bytes) -> Optional[str]:
    """Detect the image format from magic bytes.

    Returns:
        The file extension (png, jpg or webp), or None for anything else.
    """
    kind = filetype.guess(image_bytes)
    if kind is None or kind.extension not in ALLOWED_IMAGE_EXTENSIONS:
        logger.warning(f"Invalid image format: {kind.mime if kind else 'unknown'}. Only PNG, JPEG and WEBP supported.")
        return None
    return kind.extension


def validate_image_size(image_bytes: bytes, max_size_mb: int) -> bool:
    """Check raw byte length against the configured size limit."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > max_size_mb:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {max_size_mb}MB")
        return False
    return True


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Compress an image for storage using Pillow.

    Uses JPEG format with quality=85 + optimize + progressive. Resizes
    oversized images and flattens transparency onto white.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels

    Returns:
        JPEG bytes.

    Raises:
        OSError: If Pillow cannot decode or encode the image.
    """
    img = Image.open(BytesIO(image_bytes))
    original_size_mb = len(image_bytes) / (1024 * 1024)

    # Convert RGBA/LA/P to RGB for better compression
    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        rgb_img = Image.new("RGB", img.size, (255, 255, 255))
        rgb_img.paste(img, mask=img.split()[-1])
        img = rgb_img
    elif img.mode != "RGB":
        img = img.convert("RGB")

    if img.width > max_width:
        ratio = max_width / img.width
        img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

    output = BytesIO()
    img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
    compressed_bytes = output.getvalue()
    compressed_size_mb = len(compressed_bytes) / (1024 * 1024)

    logger.debug(f"Image compressed: {original_size_mb:.2f}MB → {compressed_size_mb:.2f}MB")
    return compressed_bytes


class LocalImageStore:
    """Stores images as files in one directory.

    Returned URLs are `<public_base_url>/<file name>` when a public base URL
    is configured, otherwise the file's file:// URI.
    """

    def __init__(self, directory: str | Path, public_base_url: str = "") -> None:
        self.directory = Path(directory)
        self.public_base_url = public_base_url.rstrip("/")

    def _write(self, file_name: str, data: bytes) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / file_name
        path.write_bytes(data)
        return path

    @staticmethod
    def _discard(write: asyncio.Task) -> None:
        """Remove the file of a write whose caller was cancelled."""
        if write.cancelled() or write.exception() is not None:
            return
        path = write.result()
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove abandoned image {path}: {e}")
        else:
            logger.debug(f"Removed abandoned image {path.name}")

    async def save(self, data: bytes, extension: str) -> str:
        file_name = f"{uuid.uuid4().hex}.{extension}"
        # The worker thread cannot be interrupted, so it is shielded and its
        # file removed once it finishes if the caller goes away first
        write = asyncio.ensure_future(asyncio.to_thread(self._write, file_name, data))
        try:
            path = await asyncio.shield(write)
        except asyncio.CancelledError:
            write.add_done_callback(self._discard)
            raise
        except OSError as e:
            raise RelocationError(f"Failed to write image to {self.directory}: {e}") from e

        logger.debug(f"Stored image {file_name} ({len(data) / 1024:.1f} KB)")
        if self.public_base_url:
            return f"{self.public_base_url}/{file_name}"
        return path.resolve().as_uri()


class StorageImageRelocationService:
    """Downloads a generated image and writes it into an ImageStore."""

    def __init__(
        self,
        config: Config,
        image_store: ImageStore,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.image_store = image_store
        self.session = session
        self.timeout_seconds = config.RELOCATION_TIMEOUT_SECONDS
        self.max_image_size_mb = config.MAX_IMAGE_SIZE_MB
        self.compress = config.COMPRESS_IMG
        self.compress_threshold_kb = config.COMPRESS_IMG_THRESHOLD_KB

    async def connect(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch_image_bytes(self, source_url: str) -> bytes:
        """Download the image behind a transient URL.

        Raises:
            RelocationError: On timeout, transport error or non-2xx status.
        """
        if not self.session:
            await self.connect()

        try:
            async with self.session.get(
                source_url, timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            ) as response:
                if not 200 <= response.status < 300:
                    raise RelocationError(f"Image download failed with status {response.status}")
                return await response.read()
        except asyncio.TimeoutError as e:
            raise RelocationError(f"Image download timed out after {self.timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise RelocationError(f"Image source unreachable: {type(e).__name__}") from e

    def _maybe_compress(self, image_bytes: bytes, extension: str) -> tuple[bytes, str]:
        size_kb = len(image_bytes) / 1024
        if not self.compress or size_kb < self.compress_threshold_kb:
            return image_bytes, extension
        try:
            return compress_image(image_bytes), "jpg"
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning(f"Image compression failed, storing original: {e}")
            return image_bytes, extension

    async def relocate(self, source_url: str) -> str:
        """Copy a transient generated-image URL into durable storage.

        Returns:
            Permanent URL from the image store.

        Raises:
            RelocationError: If download, validation or the storage write fails.
        """
        image_bytes = await self.fetch_image_bytes(source_url)

        if not image_bytes:
            raise RelocationError("Downloaded image is empty")
        extension = validate_image_format(image_bytes)
        if extension is None:
            raise RelocationError("Downloaded file is not a PNG, JPEG or WEBP image")
        if not validate_image_size(image_bytes, self.max_image_size_mb):
            raise RelocationError(f"Downloaded image exceeds {self.max_image_size_mb}MB")

        image_bytes, extension = await asyncio.to_thread(self._maybe_compress, image_bytes, extension)

        permanent_url = await self.image_store.save(image_bytes, extension)
        logger.info(f"Relocated generated image to {permanent_url}")
        return permanent_url
