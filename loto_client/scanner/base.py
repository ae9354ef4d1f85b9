"""Recognition transport abstract class.

The transport turns an opaque image handle into an upload and returns the
parsed recognition result. Subclasses only decide how the image bytes are
obtained.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

import aiohttp
from loguru import logger
from pydantic import ValidationError

from loto_client.config import settings
from loto_client.scanner.errors import TransportFailure
from loto_client.schemas.scan import ErrorBody, HealthBody, ScanResult

DEFAULT_FILENAME = "ticket.jpg"


def guess_mime_type(filename: str) -> str:
    """Only jpeg and png are accepted upstream; anything not .png is sent as jpeg."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return "image/png" if ext == "png" else "image/jpeg"


def filename_from_handle(handle: str) -> str:
    name = handle.rstrip("/").split("/")[-1].split("?")[0]
    return name or DEFAULT_FILENAME


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    filename: str
    mime_type: str


class RecognitionTransport(ABC):
    """Abstract base for ways of shipping an image to the recognition service."""

    name: str = ""

    def __init__(
        self,
        base_url: str | None = None,
        api_prefix: str | None = None,
        upload_field: str | None = None,
    ):
        self.base_url = (base_url or settings.RECOGNITION_BASE_URL).rstrip("/")
        self.api_prefix = api_prefix if api_prefix is not None else settings.RECOGNITION_API_PREFIX
        self.upload_field = upload_field or settings.SCAN_UPLOAD_FIELD

    @property
    def scan_url(self) -> str:
        return f"{self.base_url}{self.api_prefix}/scan-ticket"

    @property
    def health_url(self) -> str:
        return f"{self.base_url}/health"

    @abstractmethod
    def check_access(self, handle: str) -> None:
        """Raise PermissionDenied if the image source cannot be used."""
        ...

    @abstractmethod
    async def load_image(self, handle: str) -> ImagePayload:
        """Read the image bytes behind ``handle``."""
        ...

    def _build_form(self, image: ImagePayload) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(
            self.upload_field,
            image.data,
            filename=image.filename,
            content_type=image.mime_type,
        )
        return form

    async def scan(self, handle: str) -> ScanResult:
        """Upload the image and parse the result.

        No client-side timeout here; the orchestrator owns the deadline and
        cancels this coroutine when it passes.
        """
        image = await self.load_image(handle)
        logger.debug(
            "Uploading {} ({} bytes, {}) to {}",
            image.filename, len(image.data), image.mime_type, self.scan_url,
        )
        try:
            async with aiohttp.ClientSession() as client:
                async with client.post(self.scan_url, data=self._build_form(image)) as resp:
                    body = await resp.read()
                    status = resp.status
        except aiohttp.ClientError as e:
            logger.warning("Recognition service unreachable: {}", e)
            raise TransportFailure(f"Cannot reach recognition service: {e}") from e

        return self._parse_response(status, body)

    @staticmethod
    def _parse_response(status: int, body: bytes) -> ScanResult:
        if not 200 <= status < 300:
            try:
                error = ErrorBody.model_validate_json(body).error
            except ValidationError:
                error = None
            logger.warning("Recognition service returned {}: {}", status, error)
            raise TransportFailure(error or TransportFailure.user_message)

        try:
            return ScanResult.model_validate_json(body)
        except ValidationError as e:
            logger.warning("Malformed recognition response: {}", e)
            raise TransportFailure("Malformed response from recognition service") from e

    async def ping(self, timeout: float = 5.0) -> bool:
        """Check the recognition service health endpoint."""
        try:
            async with aiohttp.ClientSession() as client:
                async with client.get(
                    self.health_url,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as resp:
                    if resp.status != 200:
                        return False
                    body = HealthBody.model_validate_json(await resp.read())
                    return body.status == "ok"
        except (aiohttp.ClientError, asyncio.TimeoutError, ValidationError) as e:
            logger.debug("Health check failed: {}", e)
            return False
