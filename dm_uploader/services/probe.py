"""Video duration probing with ffprobe."""
import json
import logging
import subprocess
from pathlib import Path

from ..errors import MediaProbeError
from ..protocols import IDurationProbe

logger = logging.getLogger(__name__)


class FFprobeDurationProbe(IDurationProbe):
    """
    Reads container duration via ``ffprobe -show_format``.

    Blocking; callers run it off the event loop.
    """

    def __init__(self, binary: str = "ffprobe", timeout: float = 30):
        self._binary = binary
        self._timeout = timeout

    def duration_seconds(self, path: Path) -> float:
        try:
            result = subprocess.run(
                [
                    self._binary,
                    "-v",
                    "quiet",
                    "-print_format",
                    "json",
                    "-show_format",
                    str(path),
                ],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise MediaProbeError(
                f"{self._binary} not found. Please install FFmpeg.",
                details={"command": self._binary},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise MediaProbeError(
                "Video probe timed out, file may be corrupted",
                details={"file": str(path)},
            ) from exc

        if result.returncode != 0:
            raise MediaProbeError(
                "Video appears to be corrupted or unreadable",
                details={"file": str(path), "stderr": result.stderr[:500]},
            )

        try:
            probe_data = json.loads(result.stdout)
            duration = float(probe_data["format"]["duration"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise MediaProbeError(
                "ffprobe reported no usable duration",
                details={"file": str(path)},
            ) from exc

        logger.debug("Probed %s: %.3fs", path.name, duration)
        return duration
