"""FastAPI application entry point"""
import logging
import re
import uuid
from pathlib import Path
import tomllib

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import (
    http_exception_handler as fastapi_http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .config import settings
from .database import engine, init_db
from .api import premium_router, reflections_router
from .utils.access_log import AccessLogTimer, log_http_request

logger = logging.getLogger(__name__)

_LOG_CONTROL_RE = re.compile(r"[\r\n\t]+")


def exception_summary(exc: BaseException, *, max_len: int = 200) -> str:
    """异常类型 + 压成单行并截断后的消息；max_len<=0 时只保留类型（避免泄露细节）。"""
    name = type(exc).__name__
    if max_len <= 0:
        return name
    msg = _LOG_CONTROL_RE.sub(" ", str(exc)).strip()
    if len(msg) > max_len:
        msg = f"{msg[:max_len]}…"
    return f"{name}: {msg}" if msg else name


# 默认降低 SQLAlchemy 的日志噪声；排查 SQL 时再用 SQL_ECHO=true 打开
if not settings.sql_echo:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def _read_app_version() -> str:
    """从仓库根目录的 pyproject.toml 读取版本。"""
    try:
        repo_root = Path(__file__).resolve().parents[2]
        pyproject = repo_root / "pyproject.toml"
        if not pyproject.exists():
            return "0.1.0"
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        version = ((data.get("project") or {}).get("version") or "").strip()
        return version or "0.1.0"
    except (OSError, tomllib.TOMLDecodeError):
        return "0.1.0"


APP_VERSION = _read_app_version()

app = FastAPI(
    title="Hindsight API",
    description="Reflection journal backend with resurfacing of past entries",
    version=APP_VERSION,
)


def _split_csv(value: str) -> list[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


cors_origins = _split_csv(settings.cors_allow_origins)
if not cors_origins or cors_origins == ["*"]:
    cors_origins = ["*"]
    cors_allow_credentials = False
else:
    cors_allow_credentials = bool(settings.cors_allow_credentials)

cors_methods = _split_csv(settings.cors_allow_methods) or ["*"]
cors_headers = _split_csv(settings.cors_allow_headers) or ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=cors_methods,
    allow_headers=cors_headers,
)


@app.middleware("http")
async def access_log_middleware(request: Request, call_next):
    timer = AccessLogTimer()
    status_code = 500
    error: str | None = None

    try:
        response = await call_next(request)
        status_code = getattr(response, "status_code", 200) or 200
        return response
    except Exception as e:
        error = exception_summary(e, max_len=200 if settings.debug else 0)
        raise
    finally:
        # 访问日志不影响业务结果
        try:
            request_id = getattr(getattr(request, "state", None), "request_id", None)
            await log_http_request(
                request,
                status_code=status_code,
                duration_ms=timer.elapsed_ms(),
                error=error,
                request_id=request_id,
            )
        except Exception:
            logger.debug("[ACCESS_LOG] Failed to write access log", exc_info=True)


def _normalize_request_id(value: str | None) -> str | None:
    """外部传入的 request id：去空白、限长、拒绝控制字符。"""
    if not value or not isinstance(value, str):
        return None
    s = value.strip()
    if not s or len(s) > 64:
        return None
    if any(ord(ch) < 32 for ch in s):
        return None
    return s


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """为每个请求生成/透传 X-Request-Id，并写入响应头。"""
    incoming = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")
    rid = _normalize_request_id(incoming) or uuid.uuid4().hex
    request.state.request_id = rid

    response = await call_next(request)
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler_with_request_id(request: Request, exc: HTTPException):
    response = await fastapi_http_exception_handler(request, exc)
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_with_request_id(request: Request, exc: RequestValidationError):
    response = await request_validation_exception_handler(request, exc)
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = getattr(getattr(request, "state", None), "request_id", None)
    logger.exception("[UNHANDLED] request_id=%s", rid or "-")

    # 对外不泄露内部异常细节；debug 时给一个摘要
    detail = "INTERNAL_ERROR"
    if settings.debug:
        detail = exception_summary(exc, max_len=200)

    payload: dict[str, object] = {"detail": detail}
    if rid:
        payload["request_id"] = rid

    headers = {"X-Request-Id": rid} if rid else None
    return JSONResponse(payload, status_code=500, headers=headers)


app.include_router(reflections_router, prefix=settings.api_prefix)
app.include_router(premium_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    await init_db()


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "Hindsight API", "version": APP_VERSION}


@app.get("/health")
async def health_check():
    """Health check endpoint（包含 DB 可用性探测）。"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.exception("[HEALTH] Database check failed: %s", exception_summary(e))
        raise HTTPException(status_code=503, detail="DB_UNAVAILABLE") from e

    return {"status": "healthy", "db": "ok"}
