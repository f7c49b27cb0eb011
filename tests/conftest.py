"""Shared fixtures."""
import pytest

from helpers import FakeProbe, ScriptedTransport


@pytest.fixture
def make_transport():
    return ScriptedTransport


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def recording_sleep():
    """Sleep stand-in that records delays into ``recording_sleep.log``."""
    log = []

    async def _sleep(delay: float) -> None:
        log.append(("sleep", delay))

    _sleep.log = log
    return _sleep


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "video.mp4"
    path.write_bytes(b"\x00" * 2_000_000)
    return path


@pytest.fixture
def photo_file(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * (50_000 - 8))
    return path
