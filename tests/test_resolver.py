"""Tests for media resolution and duration probing."""
import json
import subprocess
from pathlib import Path
from unittest.mock import Mock

import pytest

from dm_uploader.errors import MediaProbeError, UnsupportedMediaType
from dm_uploader.services.probe import FFprobeDurationProbe
from dm_uploader.services.resolver import MediaResolver, sniff_mime_type
from helpers import FakeProbe


class TestSniffMimeType:
    def test_common_headers(self):
        assert sniff_mime_type(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64) == "image/png"
        assert sniff_mime_type(b"GIF89a" + b"\x00" * 64) == "image/gif"
        assert sniff_mime_type(b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 64) == "video/mp4"

    def test_empty_head(self):
        assert sniff_mime_type(b"") is None

    def test_uses_libmagic(self, monkeypatch):
        from_buffer = Mock(return_value="image/avif")
        monkeypatch.setattr("dm_uploader.services.resolver.magic.from_buffer", from_buffer)

        assert sniff_mime_type(b"\x00\x00\x00\x1cftypavif") == "image/avif"
        from_buffer.assert_called_once_with(b"\x00\x00\x00\x1cftypavif", mime=True)

    def test_uninformative_answer(self, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.resolver.magic.from_buffer",
            Mock(return_value="application/octet-stream"),
        )
        assert sniff_mime_type(b"\x01\x02\x03") is None


class TestMediaResolver:
    @pytest.mark.asyncio
    async def test_video_gets_duration(self, video_file):
        probe = FakeProbe(3.5)
        descriptor = await MediaResolver(probe).resolve(video_file)

        assert descriptor.mime_type == "video/mp4"
        assert descriptor.byte_size == 2_000_000
        assert descriptor.duration_ms == 3500
        assert probe.calls == [video_file]

    @pytest.mark.asyncio
    async def test_image_has_no_duration(self, photo_file):
        probe = FakeProbe()
        descriptor = await MediaResolver(probe).resolve(photo_file)

        assert descriptor.mime_type == "image/png"
        assert descriptor.byte_size == 50_000
        assert descriptor.duration_ms is None
        assert probe.calls == []

    @pytest.mark.asyncio
    async def test_resolving_twice_is_identical(self, video_file):
        resolver = MediaResolver(FakeProbe(1.25))
        first = await resolver.resolve(video_file)
        second = await resolver.resolve(video_file)
        assert first == second

    def test_unknown_extension_and_content(self, tmp_path):
        path = tmp_path / "blob.unknownext"
        path.write_bytes(b"just some bytes")
        with pytest.raises(UnsupportedMediaType):
            MediaResolver(FakeProbe()).resolve_sync(path)

    def test_non_media_type_rejected(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(UnsupportedMediaType) as exc_info:
            MediaResolver(FakeProbe()).resolve_sync(path)
        assert exc_info.value.details["mime_type"] == "text/plain"

    def test_missing_file(self, tmp_path):
        with pytest.raises(UnsupportedMediaType):
            MediaResolver(FakeProbe()).resolve_sync(tmp_path / "missing.mp4")

    def test_extensionless_file_sniffed(self, tmp_path):
        path = tmp_path / "clip"
        path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 100)
        descriptor = MediaResolver(FakeProbe(2.0)).resolve_sync(path)
        assert descriptor.mime_type == "video/mp4"
        assert descriptor.duration_ms == 2000

    def test_generic_extension_falls_back_to_content(self, tmp_path):
        path = tmp_path / "photo.bin"
        path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 1000)
        probe = FakeProbe()

        descriptor = MediaResolver(probe).resolve_sync(path)

        assert descriptor.mime_type == "image/png"
        assert descriptor.duration_ms is None
        assert probe.calls == []

    def test_still_image_ftyp_brand_is_not_video(self, tmp_path):
        path = tmp_path / "picture"
        path.write_bytes(b"\x00\x00\x00\x1cftypavif\x00\x00\x00\x00avifmif1miaf" + b"\x00" * 1000)
        probe = FakeProbe()

        try:
            descriptor = MediaResolver(probe).resolve_sync(path)
        except UnsupportedMediaType:
            descriptor = None

        # older libmagic builds do not know AVIF and reject it instead
        if descriptor is not None:
            assert descriptor.mime_type.startswith("image/")
            assert descriptor.duration_ms is None
        assert probe.calls == []

    def test_sniffed_image_skips_duration_probe(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.resolver.magic.from_buffer", Mock(return_value="image/heic")
        )
        path = tmp_path / "IMG_0001"
        path.write_bytes(b"\x00\x00\x00\x18ftypheic" + b"\x00" * 100)
        probe = FakeProbe()

        descriptor = MediaResolver(probe).resolve_sync(path)

        assert descriptor.mime_type == "image/heic"
        assert descriptor.duration_ms is None
        assert probe.calls == []

    def test_known_media_extension_skips_sniffing(self, photo_file, monkeypatch):
        from_buffer = Mock()
        monkeypatch.setattr("dm_uploader.services.resolver.magic.from_buffer", from_buffer)

        assert MediaResolver(FakeProbe()).resolve_sync(photo_file).mime_type == "image/png"
        from_buffer.assert_not_called()

    def test_probe_error_propagates(self, video_file):
        probe = Mock()
        probe.duration_seconds.side_effect = MediaProbeError("broken")
        with pytest.raises(MediaProbeError):
            MediaResolver(probe).resolve_sync(video_file)


class TestFFprobeDurationProbe:
    def _completed(self, stdout="", returncode=0, stderr=""):
        return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)

    def test_reads_format_duration(self, monkeypatch):
        run = Mock(return_value=self._completed(json.dumps({"format": {"duration": "3.500000"}})))
        monkeypatch.setattr("dm_uploader.services.probe.subprocess.run", run)

        assert FFprobeDurationProbe().duration_seconds(Path("video.mp4")) == 3.5
        args = run.call_args.args[0]
        assert args[0] == "ffprobe"
        assert "-show_format" in args

    def test_missing_binary(self, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.probe.subprocess.run", Mock(side_effect=FileNotFoundError())
        )
        with pytest.raises(MediaProbeError, match="not found"):
            FFprobeDurationProbe().duration_seconds(Path("video.mp4"))

    def test_timeout(self, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.probe.subprocess.run",
            Mock(side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=30)),
        )
        with pytest.raises(MediaProbeError, match="timed out"):
            FFprobeDurationProbe().duration_seconds(Path("video.mp4"))

    def test_nonzero_exit(self, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.probe.subprocess.run",
            Mock(return_value=self._completed(returncode=1, stderr="moov atom not found")),
        )
        with pytest.raises(MediaProbeError) as exc_info:
            FFprobeDurationProbe().duration_seconds(Path("video.mp4"))
        assert "moov atom" in exc_info.value.details["stderr"]

    def test_no_duration(self, monkeypatch):
        monkeypatch.setattr(
            "dm_uploader.services.probe.subprocess.run",
            Mock(return_value=self._completed(json.dumps({"format": {}}))),
        )
        with pytest.raises(MediaProbeError):
            FFprobeDurationProbe().duration_seconds(Path("video.mp4"))
