from __future__ import annotations

import sys
import unittest
from datetime import date
from pathlib import Path
from typing import cast
from typing_extensions import override
from unittest.mock import patch

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeMeta
from sqlalchemy.pool import StaticPool

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from backend.app.api import reflections as reflections_api
from backend.app.config import settings
from backend.app.database import Base as _Base  # pyright: ignore[reportAny]
from backend.app.models import Profile, Reflection
from backend.app.schemas import ReflectionCreate, ReflectionEligibilityUpdate

Base = cast(DeclarativeMeta, _Base)


class ReflectionApiTests(unittest.IsolatedAsyncioTestCase):
    engine: AsyncEngine | None = None
    session_factory: async_sessionmaker[AsyncSession] | None = None

    @override
    async def asyncSetUp(self):
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with self.session_factory() as session:
            session.add_all([Profile(id="u1"), Profile(id="u2")])
            await session.commit()

    @override
    async def asyncTearDown(self):
        if self.engine is not None:
            await self.engine.dispose()

    def test_count_words(self):
        self.assertEqual(reflections_api.count_words(None), 0)
        self.assertEqual(reflections_api.count_words("   "), 0)
        self.assertEqual(reflections_api.count_words("one  two\nthree\tfour"), 4)

    async def test_create_encrypts_body_and_counts_words(self):
        assert self.session_factory is not None
        req = ReflectionCreate(
            prompt_text="  What went well?  ",
            reflection_text="  I finished the long walk home  ",
            mood="💪",
            date=date(2025, 3, 1),
        )

        async with self.session_factory() as session:
            with patch.object(settings, "encryption_key", "ab" * 32):
                resp = await reflections_api.create_reflection(req=req, user_id="u1", db=session)

        self.assertEqual(resp.prompt_text, "What went well?")
        self.assertEqual(resp.reflection_text, "I finished the long walk home")
        self.assertEqual(resp.word_count, 6)
        self.assertEqual(resp.date, date(2025, 3, 1))
        self.assertTrue(resp.resurfacing_eligible)

        async with self.session_factory() as session:
            stored = await session.scalar(select(Reflection.reflection_text).where(Reflection.id == resp.id))
        assert stored is not None
        self.assertTrue(stored.startswith("enc:v1:"))

    async def test_whitespace_only_body_is_rejected(self):
        assert self.session_factory is not None
        async with self.session_factory() as session:
            with self.assertRaises(HTTPException) as ctx:
                await reflections_api.create_reflection(
                    req=ReflectionCreate(reflection_text="   "),
                    user_id="u1",
                    db=session,
                )
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_list_is_scoped_and_filtered(self):
        assert self.session_factory is not None
        async with self.session_factory() as session:
            for user_id, day in (("u1", 1), ("u1", 5), ("u1", 9), ("u2", 5)):
                await reflections_api.create_reflection(
                    req=ReflectionCreate(reflection_text=f"entry {day}", date=date(2025, 1, day)),
                    user_id=user_id,
                    db=session,
                )

            rows = await reflections_api.list_reflections(
                start=date(2025, 1, 2), end=None, limit=50, user_id="u1", db=session
            )
            self.assertEqual([r.date for r in rows], [date(2025, 1, 9), date(2025, 1, 5)])

            with self.assertRaises(HTTPException) as ctx:
                await reflections_api.list_reflections(
                    start=date(2025, 1, 9), end=date(2025, 1, 1), limit=50, user_id="u1", db=session
                )
            self.assertEqual(ctx.exception.status_code, 400)

    async def test_toggle_eligibility_only_for_owner(self):
        assert self.session_factory is not None
        async with self.session_factory() as session:
            created = await reflections_api.create_reflection(
                req=ReflectionCreate(reflection_text="private"),
                user_id="u1",
                db=session,
            )

            with self.assertRaises(HTTPException) as ctx:
                await reflections_api.update_resurfacing_eligibility(
                    reflection_id=created.id,
                    req=ReflectionEligibilityUpdate(eligible=False),
                    user_id="u2",
                    db=session,
                )
            self.assertEqual(ctx.exception.status_code, 404)

            updated = await reflections_api.update_resurfacing_eligibility(
                reflection_id=created.id,
                req=ReflectionEligibilityUpdate(eligible=False),
                user_id="u1",
                db=session,
            )
        self.assertFalse(updated.resurfacing_eligible)


if __name__ == "__main__":
    unittest.main()
