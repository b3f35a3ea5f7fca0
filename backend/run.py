"""Start the FastAPI application

命令行参数优先于 .env 中的 BACKEND_HOST / BACKEND_PORT / BACKEND_RELOAD。
"""

import argparse

import uvicorn

from app.config import settings


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", type=str, default=settings.backend_host, help="监听地址")
    parser.add_argument("--port", type=int, default=settings.backend_port, help="监听端口")
    parser.add_argument("--no-reload", action="store_true", help="关闭自动重载")
    args = parser.parse_args()

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=settings.backend_reload and not args.no_reload,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
