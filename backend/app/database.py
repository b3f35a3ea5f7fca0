from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import event, text
from .config import settings

# SQLite 默认值：
# - busy_timeout：降低并发写入下的 “database is locked”
# - WAL：提升并发读写能力
# - foreign_keys：打开外键约束（SQLite 默认关闭）
_is_sqlite = str(settings.database_url or "").startswith("sqlite")
_connect_args = {"timeout": 30} if _is_sqlite else {}

# Create async engine (supports both SQLite and PostgreSQL)
engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_pre_ping=True,
    future=True,
    connect_args=_connect_args,
)

if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=30000;")
        cursor.close()

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


async def get_db():
    """Dependency for getting database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Initialize database tables"""
    # 确保所有模型都已注册到 Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await _ensure_schema(conn)


async def _ensure_schema(conn) -> None:
    """补齐索引/唯一约束，兼容在这些约束加入之前创建的旧库。

    说明：
    - 本项目未引入 Alembic，索引统一用 IF NOT EXISTS 创建（SQLite / PostgreSQL 通用）。
    - SQLite 旧库可能缺少 resurfacing_eligible 列，通过 PRAGMA table_info 判断后补齐。
    """
    dialect = engine.dialect.name

    if dialect == "sqlite":
        result = await conn.execute(text("PRAGMA table_info(reflections)"))
        cols = {row[1] for row in result.fetchall()}
        if "resurfacing_eligible" not in cols:
            await conn.execute(
                text("ALTER TABLE reflections ADD COLUMN resurfacing_eligible BOOLEAN NOT NULL DEFAULT 1")
            )
    elif dialect.startswith("postgresql"):
        await conn.execute(
            text(
                "ALTER TABLE reflections "
                "ADD COLUMN IF NOT EXISTS resurfacing_eligible BOOLEAN NOT NULL DEFAULT TRUE"
            )
        )

    # 近两周的心情/活跃度查询：按用户 + 日期范围
    await conn.execute(
        text("CREATE INDEX IF NOT EXISTS idx_reflections_user_date ON reflections (user_id, date)")
    )
    # 候选池查询：eligible + date <= 截止日，按日期倒序取前 N 条
    await conn.execute(
        text(
            "CREATE INDEX IF NOT EXISTS idx_reflections_user_eligible_date "
            "ON reflections (user_id, resurfacing_eligible, date)"
        )
    )

    # 同一条记录对同一用户最多回顾一次：由存储层唯一索引兜底（并发请求下应用层无锁）
    await conn.execute(
        text(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_resurfacing_events_user_reflection "
            "ON reflection_resurfacing_events (user_id, reflection_id)"
        )
    )
    await conn.execute(
        text(
            "CREATE INDEX IF NOT EXISTS idx_resurfacing_events_user_surfaced_at "
            "ON reflection_resurfacing_events (user_id, surfaced_at DESC)"
        )
    )
