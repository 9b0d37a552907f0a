"""
Pytest Configuration and Shared Fixtures

Every test gets its own in-memory SQLite database, so budgets and
transactions never leak between tests.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from budget_guard.core.database import Base
from budget_guard.models import transaction as _models  # noqa: F401
from budget_guard.models.transaction import Budget
from budget_guard.schemas.preferences import AlertThresholds, CurrencyFormat

USER_ID = 1
OTHER_USER_ID = 2


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def thresholds() -> AlertThresholds:
    return AlertThresholds(large_transaction_threshold=1000, budget_threshold=0.8, currency_symbol="$")


@pytest.fixture
def usd() -> CurrencyFormat:
    return CurrencyFormat(symbol="$")


@pytest.fixture
def make_budget(db):
    """Insert a budget row directly; spent always starts at zero."""
    async def _make(category="Groceries", limit=1000.0, user_id=USER_ID):
        budget = Budget(user_id=user_id, category=category, budget=limit)
        db.add(budget)
        await db.commit()
        await db.refresh(budget)
        return budget
    return _make
