"""Service layer – submitting images to the proxy route and tracking results.

Each call to ``AnalysisSession.analyze`` takes a new request token. Only the
response carrying the current token may update the session; older responses
are dropped so that overlapping submissions can not overwrite newer results.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from src.weldscan.config import ANALYSIS_ERROR_MESSAGE, settings
from src.weldscan.schemas.inspection import ImageDimensions
from src.weldscan.schemas.prediction import Prediction, PredictionsResponse
from src.weldscan.services.image_store import StoredImage

logger = logging.getLogger(__name__)

Submitter = Callable[[bytes, str, str], Awaitable[list[Prediction]]]


class AnalysisError(Exception):
    """The proxy route answered with an error payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


async def submit_to_proxy(
    content: bytes,
    filename: str,
    media_type: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Prediction]:
    """POST the image as multipart ``file`` to the proxy route and parse predictions."""
    async with httpx.AsyncClient(timeout=settings.upstream_timeout, transport=transport) as client:
        response = await client.post(
            settings.proxy_url,
            files={"file": (filename, content, media_type)},
        )

    if not response.is_success:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = payload.get("error") if isinstance(payload, dict) else None
        raise AnalysisError(
            message or f"Request failed with status code {response.status_code}",
            status_code=response.status_code,
        )

    return PredictionsResponse.model_validate(response.json()).predictions


class AnalysisSession:
    def __init__(
        self,
        submit: Submitter = submit_to_proxy,
        linger_seconds: float | None = None,
    ) -> None:
        self._submit = submit
        self._linger = settings.scan_linger_seconds if linger_seconds is None else linger_seconds
        self._token = 0
        self._linger_handle: asyncio.TimerHandle | None = None

        self.predictions: list[Prediction] = []
        self.dimensions: ImageDimensions | None = None
        self.loading = False
        self.scanning = False
        self.error: str | None = None

    @property
    def token(self) -> int:
        return self._token

    def clear(self) -> None:
        """Drop results and dimensions of the previous image."""
        self.predictions = []
        self.dimensions = None
        self.error = None

    def fail(self, message: str) -> None:
        self.error = message

    def set_display_size(self, width: float, height: float, image: StoredImage) -> None:
        if image.natural_width > 0 and image.natural_height > 0:
            self.dimensions = ImageDimensions(
                width=width,
                height=height,
                naturalWidth=image.natural_width,
                naturalHeight=image.natural_height,
            )

    async def analyze(self, image: StoredImage) -> bool:
        """
        Run one analysis for *image*.

        Returns ``False`` when the result was discarded because a newer
        analysis started while this one was in flight.
        """
        self._token += 1
        token = self._token
        self._cancel_linger()

        self.clear()
        self.loading = True
        self.scanning = True

        predictions: list[Prediction] = []
        error: str | None = None
        try:
            predictions = await self._submit(image.content, image.ref.filename, image.ref.media_type)
        except Exception as exc:
            logger.exception("Upload failed")
            error = str(exc) or ANALYSIS_ERROR_MESSAGE

        if token != self._token:
            logger.info("Discarding stale analysis result (token %d, current %d)", token, self._token)
            return False

        self.predictions = predictions
        self.error = error
        self.loading = False
        self._schedule_scan_end(token)
        return True

    def _schedule_scan_end(self, token: int) -> None:
        if self._linger <= 0:
            self.scanning = False
            return
        loop = asyncio.get_running_loop()
        self._linger_handle = loop.call_later(self._linger, self._end_scan, token)

    def _end_scan(self, token: int) -> None:
        if token == self._token:
            self.scanning = False
        self._linger_handle = None

    def _cancel_linger(self) -> None:
        if self._linger_handle is not None:
            self._linger_handle.cancel()
            self._linger_handle = None

    def close(self) -> None:
        self._cancel_linger()
        self.scanning = False
