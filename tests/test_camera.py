"""Tests for the camera session."""

import asyncio
import io

import pytest
from PIL import Image

from fakes import FakeDevices
from src.weldscan.services.camera_service import (
    CameraNotActiveError,
    CameraSession,
    CameraSwitchError,
    CameraUnavailableError,
    is_mobile_user_agent,
)


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", True),
        ("Mozilla/5.0 (Linux; android 14; Pixel 8)", True),
        ("Mozilla/5.0 (Windows NT 10.0; Win64; x64)", False),
        (None, False),
    ],
)
def test_is_mobile_user_agent(user_agent, expected) -> None:
    assert is_mobile_user_agent(user_agent) is expected


def test_start_prefers_front_camera_on_desktop() -> None:
    camera = CameraSession(FakeDevices("user", "environment"))
    asyncio.run(camera.start(prefer_rear=False))
    assert camera.facing_mode == "user"
    assert camera.active_tracks == 1


def test_start_prefers_rear_camera_on_mobile() -> None:
    camera = CameraSession(FakeDevices("user", "environment"))
    asyncio.run(camera.start(prefer_rear=True))
    assert camera.facing_mode == "environment"


def test_start_falls_back_to_front_camera() -> None:
    devices = FakeDevices("user")
    camera = CameraSession(devices)
    asyncio.run(camera.start(prefer_rear=True))
    assert camera.facing_mode == "user"
    assert camera.active


def test_start_without_any_camera() -> None:
    camera = CameraSession(FakeDevices())
    with pytest.raises(CameraUnavailableError):
        asyncio.run(camera.start(prefer_rear=True))
    assert not camera.active
    assert camera.active_tracks == 0


def test_start_twice_releases_first_stream() -> None:
    devices = FakeDevices("user")
    camera = CameraSession(devices)
    asyncio.run(camera.start())
    asyncio.run(camera.start())
    assert devices.live_streams == 1


def test_stop_leaves_no_active_tracks() -> None:
    devices = FakeDevices("user", "environment")
    camera = CameraSession(devices)
    asyncio.run(camera.start())
    asyncio.run(camera.switch())

    camera.stop()
    camera.stop()

    assert camera.active_tracks == 0
    assert devices.live_streams == 0


def test_switch_toggles_facing_mode() -> None:
    devices = FakeDevices("user", "environment")
    camera = CameraSession(devices)
    asyncio.run(camera.start())

    asyncio.run(camera.switch())

    assert camera.facing_mode == "environment"
    assert devices.opened[0].live is False
    assert devices.live_streams == 1


def test_switch_to_unavailable_mode_keeps_previous() -> None:
    devices = FakeDevices("user")
    camera = CameraSession(devices)
    asyncio.run(camera.start())

    with pytest.raises(CameraSwitchError) as exc_info:
        asyncio.run(camera.switch())

    assert exc_info.value.reverted is True
    assert str(exc_info.value) == "Could not access back camera."
    assert camera.facing_mode == "user"
    assert camera.active_tracks == 1
    assert devices.live_streams == 1


def test_switch_when_revert_fails_closes_camera() -> None:
    devices = FakeDevices("environment")
    camera = CameraSession(devices)
    asyncio.run(camera.start(prefer_rear=True))
    devices.available.clear()

    with pytest.raises(CameraSwitchError) as exc_info:
        asyncio.run(camera.switch())

    assert exc_info.value.reverted is False
    assert str(exc_info.value) == "Could not access front camera."
    assert not camera.active
    assert devices.live_streams == 0


def test_capture_returns_jpeg_and_stops_camera() -> None:
    devices = FakeDevices("user")
    camera = CameraSession(devices, jpeg_quality=95)
    asyncio.run(camera.start())

    jpeg = asyncio.run(camera.capture())

    with Image.open(io.BytesIO(jpeg)) as img:
        assert img.format == "JPEG"
        assert img.size == (64, 48)
    assert not camera.active
    assert devices.live_streams == 0


def test_capture_requires_active_camera() -> None:
    camera = CameraSession(FakeDevices("user"))
    with pytest.raises(CameraNotActiveError):
        asyncio.run(camera.capture())
