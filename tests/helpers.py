"""Test doubles: a scripted upload endpoint and a fake ffprobe."""
from pathlib import Path
from typing import Dict, List, Union

from dm_uploader.models import ApiResult

Scripted = Union[ApiResult, Exception]


class ScriptedTransport:
    """Answers each upload command from a script; records every call."""

    def __init__(self, script: Dict[str, List[Scripted]], log: list = None):
        self._script = {k: list(v) for k, v in script.items()}
        self.calls = []
        self.log = log if log is not None else []

    def commands(self) -> List[str]:
        return [call["params"].get("command") for call in self.calls]

    def count(self, command: str) -> int:
        return self.commands().count(command)

    async def send(self, url, method="GET", *, params=None, content=None, headers=None):
        params = dict(params or {})
        command = params.get("command", url)
        self.calls.append(
            {"url": url, "method": method, "params": params, "content": content, "headers": dict(headers or {})}
        )
        self.log.append(command)
        answers = self._script.get(command)
        if not answers:
            raise AssertionError(f"unexpected command {command}")
        answer = answers.pop(0) if len(answers) > 1 else answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeProbe:
    def __init__(self, seconds: float = 3.5):
        self.seconds = seconds
        self.calls: List[Path] = []

    def duration_seconds(self, path: Path) -> float:
        self.calls.append(Path(path))
        return self.seconds


INIT_OK = ApiResult.ok(
    202, {"media_id": 1234567890, "media_id_string": "1234567890", "expires_after_secs": 86400, "media_key": "7_1234567890"}
)
APPEND_OK = ApiResult.ok(204, None)
FINALIZE_READY = ApiResult.ok(200, {"media_id_string": "1234567890", "size": 50000})


def processing(state: str, check_after_secs=None, progress_percent=None) -> ApiResult:
    info = {"state": state}
    if check_after_secs is not None:
        info["check_after_secs"] = check_after_secs
    if progress_percent is not None:
        info["progress_percent"] = progress_percent
    return ApiResult.ok(200, {"media_id_string": "1234567890", "processing_info": info})
