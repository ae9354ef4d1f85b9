"""Concrete recognition transports and the factory that picks one at startup.

``file``: the image handle is a local path, read from disk.
``url``: the image handle is an http(s) URL, downloaded before upload.
"""

import asyncio
import os
from functools import partial
from pathlib import Path
from urllib.parse import urlparse

import aiohttp
from loguru import logger

from loto_client.config import settings
from loto_client.scanner.base import (
    ImagePayload,
    RecognitionTransport,
    filename_from_handle,
    guess_mime_type,
)
from loto_client.scanner.errors import PermissionDenied, TransportFailure


class FileTransport(RecognitionTransport):
    name = "file"

    def check_access(self, handle: str) -> None:
        path = Path(handle)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise PermissionDenied(f"Cannot read image file: {handle}")

    async def _run_sync(self, func, *args, **kwargs):
        """Run a blocking function in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def load_image(self, handle: str) -> ImagePayload:
        self.check_access(handle)
        path = Path(handle)
        try:
            data = await self._run_sync(path.read_bytes)
        except OSError as e:
            raise PermissionDenied(f"Cannot read image file: {handle}") from e
        return ImagePayload(data=data, filename=path.name, mime_type=guess_mime_type(path.name))


class UrlTransport(RecognitionTransport):
    name = "url"

    def check_access(self, handle: str) -> None:
        if urlparse(handle).scheme not in ("http", "https"):
            raise PermissionDenied(f"Unsupported image location: {handle}")

    async def load_image(self, handle: str) -> ImagePayload:
        self.check_access(handle)
        filename = filename_from_handle(urlparse(handle).path)
        try:
            async with aiohttp.ClientSession() as client:
                async with client.get(handle) as resp:
                    if resp.status != 200:
                        raise PermissionDenied(
                            f"Image download returned {resp.status}: {handle}"
                        )
                    data = await resp.read()
                    mime_type = resp.headers.get("Content-Type", "").split(";")[0]
        except aiohttp.ClientError as e:
            logger.warning("Image download failed for {}: {}", handle, e)
            raise TransportFailure(f"Cannot download image: {e}") from e

        if mime_type not in ("image/png", "image/jpeg"):
            mime_type = guess_mime_type(filename)
        return ImagePayload(data=data, filename=filename, mime_type=mime_type)


# Registry of available transports
_TRANSPORT_REGISTRY: dict[str, type[RecognitionTransport]] = {
    FileTransport.name: FileTransport,
    UrlTransport.name: UrlTransport,
}


def create_transport(name: str | None = None, **config) -> RecognitionTransport:
    """Create a transport by name (default: ``settings.IMAGE_TRANSPORT``).

    Raises:
        ValueError: If the name is not registered
    """
    name = name or settings.IMAGE_TRANSPORT
    if name not in _TRANSPORT_REGISTRY:
        available = ", ".join(_TRANSPORT_REGISTRY)
        raise ValueError(f"Unknown transport: {name}. Available: {available}")
    transport = _TRANSPORT_REGISTRY[name](**config)
    logger.info("Using {} transport -> {}", name, transport.scan_url)
    return transport


def register_transport(name: str, transport_class: type) -> None:
    """Register a custom transport type."""
    if not issubclass(transport_class, RecognitionTransport):
        raise TypeError(f"{transport_class} must be a subclass of RecognitionTransport")
    _TRANSPORT_REGISTRY[name] = transport_class


def available_transports() -> list[str]:
    return list(_TRANSPORT_REGISTRY.keys())
