"""建表脚本：创建数据表并补齐索引/唯一约束（可重复执行）

使用方式（从 backend 目录执行）：
   uv run python init_db.py
"""

import asyncio

from sqlalchemy import inspect

from app.config import settings
from app.database import engine, init_db


async def main() -> int:
    await init_db()

    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    print(f"database: {engine.url.render_as_string(hide_password=True)}")
    print(f"tables:   {', '.join(sorted(tables))}")
    if settings.encryption_key:
        print("encryption: enabled")
    else:
        print("encryption: disabled (ENCRYPTION_KEY 未配置，正文将以明文保存)")
    await engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
