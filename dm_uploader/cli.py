"""Command line interface for dm_uploader package."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

from rich.logging import RichHandler

from .cli_progress import UploadPhaseDisplay, render_configuration_summary


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=True,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _load_cookies(path: Path) -> Dict[str, str]:
    """
    Read cookies exported from a browser session.

    Accepts either a list of ``{"name": ..., "value": ...}`` objects or a
    plain name -> value mapping.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CLIError(f"could not read cookies file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CLIError(f"cookies file {path} is not valid JSON: {exc}") from exc

    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if isinstance(raw, list):
        cookies = {}
        for item in raw:
            if isinstance(item, dict) and "name" in item and "value" in item:
                cookies[str(item["name"])] = str(item["value"])
        return cookies
    raise CLIError(f"unsupported cookies format in {path}")


def _build_credentials(cookies_file: Optional[Path]):
    from .models import Credentials

    bearer = os.getenv("DM_UPLOADER_BEARER_TOKEN")
    if not bearer:
        raise CLIError("DM_UPLOADER_BEARER_TOKEN environment variable is not set")

    cookies: Dict[str, str] = {}
    if cookies_file is not None:
        cookies.update(_load_cookies(cookies_file))
    for name, env_name in (("auth_token", "DM_UPLOADER_AUTH_TOKEN"), ("ct0", "DM_UPLOADER_CT0")):
        value = os.getenv(env_name)
        if value:
            cookies[name] = value

    if "auth_token" not in cookies or "ct0" not in cookies:
        raise CLIError("logged-in cookies required: auth_token and ct0")
    return Credentials(bearer_token=bearer, cookies=cookies)


async def _run_upload(
    source: Path,
    category: Optional[str],
    conversation: Optional[str],
    text: str,
    cookies_file: Optional[Path],
    max_status_checks: Optional[int],
    timeout: Optional[float],
) -> int:
    from . import UploadOrchestrator, UploaderError
    from .models import UploadConfig

    credentials = _build_credentials(cookies_file)
    config = UploadConfig.from_env(
        max_status_checks=max_status_checks,
        processing_timeout=timeout,
    )

    display = UploadPhaseDisplay(source)
    try:
        async with UploadOrchestrator(credentials, config=config) as orchestrator:
            orchestrator.events.on("phase", display.on_phase)
            orchestrator.events.on("processing", display.on_processing)

            if conversation:
                response = await orchestrator.send_message(
                    conversation, text, media_path=source, media_category=category
                )
                print(f"media_id: {display.session.media_id if display.session else '-'}")
                entries = response.get("entries") or [{}]
                message_id = entries[0].get("message", {}).get("id", "-")
                print(f"message_id: {message_id}")
                return 0

            media_id = await orchestrator.upload_media(source, category)
            print(f"media_id: {media_id}")
            return 0
    except UploaderError as exc:
        raise CLIError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dm-upload",
        description="Upload an image, GIF or video for direct messages.",
    )
    parser.add_argument("source", nargs="?", type=Path, help="Media file path")
    parser.add_argument(
        "-c",
        "--category",
        default=None,
        help="media_category hint (default: dm_image / dm_gif / dm_video by type)",
    )
    parser.add_argument(
        "--conversation",
        default=None,
        help="Send the uploaded media to this conversation id",
    )
    parser.add_argument("--text", default="", help="Message text when sending")
    parser.add_argument(
        "--cookies",
        type=Path,
        default=None,
        help="JSON cookies file (list of {name, value} or a mapping)",
    )
    parser.add_argument(
        "--max-status-checks",
        type=int,
        default=None,
        help="Give up after this many STATUS polls (default 60)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up if processing takes longer than this many seconds",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="dm-upload (from dm_uploader)",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.source is None:
        parser.print_help()
        return 0

    source = Path(args.source).expanduser()
    if not source.is_file():
        print(f"ERROR: source is not a file: {source}", file=sys.stderr)
        return 1

    if args.text and not args.conversation:
        print("WARNING: --text ignored without --conversation.", file=sys.stderr)

    render_configuration_summary(
        {
            "Source": str(source),
            "Category": args.category or "(by media type)",
            "Conversation": args.conversation or "-",
            "Cookies": str(args.cookies) if args.cookies else "(env)",
            "Max Status Checks": args.max_status_checks or "(default)",
            "Timeout": f"{args.timeout}s" if args.timeout else "-",
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(
            _run_upload(
                source=source,
                category=args.category,
                conversation=args.conversation,
                text=args.text,
                cookies_file=args.cookies,
                max_status_checks=args.max_status_checks,
                timeout=args.timeout,
            )
        )
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
