"""In-memory stand-ins for cameras and images used across the tests."""

import io

import numpy as np
from PIL import Image

from src.weldscan.services.camera_service import CameraUnavailableError


def make_jpeg(width: int = 64, height: int = 48, color: str = "gray") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="JPEG")
    return buffer.getvalue()


class FakeStream:
    def __init__(self, facing_mode: str, broken: bool = False) -> None:
        self.facing_mode = facing_mode
        self._live = True
        self._broken = broken

    @property
    def live(self) -> bool:
        return self._live

    def read_frame(self) -> np.ndarray:
        if self._broken:
            raise CameraUnavailableError(self.facing_mode, "Camera returned no frame")
        return np.full((48, 64, 3), 128, dtype=np.uint8)

    def stop(self) -> None:
        self._live = False


class FakeDevices:
    """Opens a ``FakeStream`` for every facing mode listed in ``available``."""

    def __init__(self, *available: str) -> None:
        self.available = set(available)
        self.broken_frames = False
        self.opened: list[FakeStream] = []

    def open(self, facing_mode: str) -> FakeStream:
        if facing_mode not in self.available:
            raise CameraUnavailableError(facing_mode)
        stream = FakeStream(facing_mode, broken=self.broken_frames)
        self.opened.append(stream)
        return stream

    @property
    def live_streams(self) -> int:
        return sum(1 for s in self.opened if s.live)
