from __future__ import annotations

import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from .. import config as config_module
from ..config import settings


_WRITE_LOCK = threading.Lock()


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def _logfmt_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\r", "\\r").replace("\n", "\\n").replace("\t", "\\t")
    if len(text) > 800:
        text = f"{text[:800]}…"
    # 含空白或特殊字符时加引号
    if not text or any(ch.isspace() for ch in text) or any(ch in text for ch in ['"', "=", "\\"]):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f"\"{escaped}\""
    return text


def to_logfmt(fields: list[tuple[str, Any]]) -> str:
    parts: list[str] = []
    for key, value in fields:
        rendered = _logfmt_value(value)
        if rendered == "":
            continue
        parts.append(f"{key}={rendered}")
    return " ".join(parts)


def _resolve_log_dir() -> Path:
    log_dir = Path(settings.access_log_dir)
    if log_dir.is_absolute():
        return log_dir
    return (config_module._REPO_ROOT / log_dir).resolve()


def _append_line_sync(line: str) -> Path:
    dt = datetime.now().astimezone()
    path = _resolve_log_dir() / f"{dt.strftime('%Y-%m-%d')}.logs"
    path.parent.mkdir(parents=True, exist_ok=True)

    with _WRITE_LOCK:
        with path.open("a", encoding="utf-8", newline="\n") as f:
            f.write(line.rstrip("\n") + "\n")
    return path


def _get_client_ip(request: Request) -> str | None:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return None


def _should_ignore(path: str) -> bool:
    raw = (settings.access_log_ignore_paths or "").strip()
    if not raw:
        return False
    return path in {p.strip() for p in raw.split(",") if p.strip()}


async def log_http_request(
    request: Request,
    *,
    status_code: int,
    duration_ms: int,
    error: str | None = None,
    request_id: str | None = None,
) -> None:
    """追加一行 HTTP 访问日志。user 取自鉴权依赖写入的 request.state.user_id。"""
    if not settings.access_log_enabled:
        return
    if _should_ignore(request.url.path):
        return

    state = getattr(request, "state", None)
    query = request.url.query if settings.access_log_include_query else None
    line = to_logfmt(
        [
            ("ts", _now_iso()),
            ("method", request.method),
            ("path", request.url.path),
            ("query", query or None),
            ("status", status_code),
            ("dur_ms", duration_ms),
            ("rid", request_id),
            ("user", getattr(state, "user_id", None)),
            ("ip", _get_client_ip(request)),
            ("ua", request.headers.get("user-agent")),
            ("error", error),
        ]
    )
    await run_in_threadpool(_append_line_sync, line)


class AccessLogTimer:
    """简单计时器：用于计算请求耗时（ms）。"""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._start) * 1000)
