"""Service layer – camera acquisition, switching and still capture.

Cameras are OpenCV capture devices. Each facing mode (``user`` for the
front camera, ``environment`` for the back camera) maps to a device index.
The ``CameraSession`` owns at most one open stream and releases it on
switch, stop, capture and shutdown.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
from typing import Protocol

import cv2
import numpy as np
from PIL import Image

from src.weldscan.schemas.inspection import CameraState, FacingMode

logger = logging.getLogger(__name__)

_MOBILE_UA = re.compile(r"iPhone|iPad|iPod|Android", re.IGNORECASE)


def is_mobile_user_agent(user_agent: str | None) -> bool:
    return bool(user_agent and _MOBILE_UA.search(user_agent))


def opposite(mode: FacingMode) -> FacingMode:
    return "environment" if mode == "user" else "user"


def camera_label(mode: FacingMode) -> str:
    return "front" if mode == "user" else "back"


class CameraUnavailableError(RuntimeError):
    """Raised when a stream for the requested facing mode cannot be opened."""

    def __init__(self, facing_mode: FacingMode, reason: str = "") -> None:
        self.facing_mode = facing_mode
        super().__init__(reason or f"Unable to open {camera_label(facing_mode)} camera")


class CameraSwitchError(RuntimeError):
    """Raised when switching fails. ``reverted`` tells whether the old mode is live again."""

    def __init__(self, requested: FacingMode, reverted: bool) -> None:
        self.requested = requested
        self.reverted = reverted
        super().__init__(f"Could not access {camera_label(requested)} camera.")


class CameraNotActiveError(RuntimeError):
    pass


# ──────────────────────────────────────────────
# Device abstraction
# ──────────────────────────────────────────────
class VideoStream(Protocol):
    @property
    def live(self) -> bool: ...

    def read_frame(self) -> np.ndarray: ...

    def stop(self) -> None: ...


class MediaDevices(Protocol):
    def open(self, facing_mode: FacingMode) -> VideoStream: ...


class OpenCVStream:
    """A single ``cv2.VideoCapture`` producing RGB frames."""

    def __init__(self, capture: cv2.VideoCapture, facing_mode: FacingMode) -> None:
        self._capture = capture
        self.facing_mode = facing_mode

    @property
    def live(self) -> bool:
        return self._capture.isOpened()

    def read_frame(self) -> np.ndarray:
        success, frame = self._capture.read()
        if not success:
            raise CameraUnavailableError(self.facing_mode, "Camera returned no frame")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def stop(self) -> None:
        if self._capture.isOpened():
            logger.info("Releasing %s camera", camera_label(self.facing_mode))
            self._capture.release()


class OpenCVMediaDevices:
    def __init__(self, indices: dict[str, int]) -> None:
        self._indices = indices

    def open(self, facing_mode: FacingMode) -> OpenCVStream:
        index = self._indices[facing_mode]
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(facing_mode, f"Unable to open video device {index}")
        logger.info("Video device %s opened as %s camera", index, camera_label(facing_mode))
        return OpenCVStream(capture, facing_mode)


# ──────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────
class CameraSession:
    def __init__(self, devices: MediaDevices, jpeg_quality: int = 95) -> None:
        self._devices = devices
        self._jpeg_quality = jpeg_quality
        self._stream: VideoStream | None = None
        self.facing_mode: FacingMode = "user"

    @property
    def active(self) -> bool:
        return self._stream is not None

    @property
    def active_tracks(self) -> int:
        return 1 if self._stream is not None and self._stream.live else 0

    def state(self) -> CameraState:
        return CameraState(
            active=self.active,
            facing_mode=self.facing_mode,
            active_tracks=self.active_tracks,
        )

    async def _open(self, mode: FacingMode) -> None:
        self._stream = await asyncio.to_thread(self._devices.open, mode)
        self.facing_mode = mode

    async def start(self, prefer_rear: bool = False) -> None:
        """
        Open a stream, preferring the back camera when *prefer_rear* is set.

        Falls back to the front camera. Raises ``CameraUnavailableError``
        when neither can be opened; no stream is left open in that case.
        """
        self.stop()
        preferred: FacingMode = "environment" if prefer_rear else "user"
        try:
            await self._open(preferred)
        except CameraUnavailableError as exc:
            logger.warning("Error accessing camera: %s", exc)
            try:
                await self._open("user")
            except CameraUnavailableError:
                logger.error("Fallback camera also failed", exc_info=True)
                raise

    async def switch(self) -> None:
        """Swap to the opposite facing mode, reverting to the current one on failure."""
        previous = self.facing_mode
        requested = opposite(previous)
        self.stop()
        try:
            await self._open(requested)
        except CameraUnavailableError as exc:
            logger.warning("Error accessing %s camera: %s", camera_label(requested), exc)
            try:
                await self._open(previous)
            except CameraUnavailableError:
                logger.error("Failed to revert to previous camera", exc_info=True)
                raise CameraSwitchError(requested, reverted=False) from exc
            raise CameraSwitchError(requested, reverted=True) from exc

    async def capture(self) -> bytes:
        """Snapshot the current frame as JPEG bytes and stop the camera."""
        if self._stream is None:
            raise CameraNotActiveError("Camera is not active")
        try:
            frame = await asyncio.to_thread(self._stream.read_frame)
            return await asyncio.to_thread(self._encode_jpeg, frame)
        finally:
            self.stop()

    def _encode_jpeg(self, frame: np.ndarray) -> bytes:
        buffer = io.BytesIO()
        Image.fromarray(frame).convert("RGB").save(buffer, format="JPEG", quality=self._jpeg_quality)
        return buffer.getvalue()

    def stop(self) -> None:
        """Stop every track of the current stream. Safe to call repeatedly."""
        if self._stream is not None:
            stream, self._stream = self._stream, None
            stream.stop()
