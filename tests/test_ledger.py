"""Tests for BudgetLedger recomputation."""

from datetime import datetime

import pytest

from budget_guard.models.transaction import Transaction
from budget_guard.services.ledger import BudgetLedger

from conftest import USER_ID


def add_row(db, amount, type_="expense", budget_id=None, category="Groceries"):
    db.add(Transaction(
        user_id=USER_ID,
        description="row",
        category=category,
        amount=amount,
        type=type_,
        date=datetime(2024, 8, 1),
        budget_id=budget_id,
    ))


@pytest.mark.asyncio
async def test_sums_absolute_expense_amounts(db, make_budget):
    budget = await make_budget()
    add_row(db, -120.25, budget_id=budget.id)
    add_row(db, -79.75, budget_id=budget.id)
    # Legacy rows stored with a positive expense amount still count by absolute value
    add_row(db, 50, budget_id=budget.id)
    await db.commit()

    snapshot = await BudgetLedger.recompute_spent(db, budget.id)

    assert snapshot.spent == pytest.approx(250.0)
    assert snapshot.id == budget.id


@pytest.mark.asyncio
async def test_ignores_income_and_other_budgets(db, make_budget):
    budget = await make_budget()
    other = await make_budget(category="Rent")
    add_row(db, -100, budget_id=budget.id)
    add_row(db, 900, type_="income", budget_id=budget.id)
    add_row(db, -400, budget_id=other.id)
    add_row(db, -30, budget_id=None)
    await db.commit()

    snapshot = await BudgetLedger.recompute_spent(db, budget.id)

    assert snapshot.spent == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_empty_budget_is_zero(db, make_budget):
    budget = await make_budget()
    snapshot = await BudgetLedger.recompute_spent(db, budget.id)
    assert snapshot.spent == 0.0


@pytest.mark.asyncio
async def test_idempotent(db, make_budget):
    budget = await make_budget()
    add_row(db, -42, budget_id=budget.id)
    await db.commit()

    first = await BudgetLedger.recompute_spent(db, budget.id)
    second = await BudgetLedger.recompute_spent(db, budget.id)

    assert first == second
    assert second.spent == pytest.approx(42.0)


@pytest.mark.asyncio
async def test_writes_spent_back_to_budget(db, make_budget):
    budget = await make_budget()
    add_row(db, -10, budget_id=budget.id)
    await db.commit()

    await BudgetLedger.recompute_spent(db, budget.id)
    await db.refresh(budget)

    assert budget.spent == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_unknown_budget_returns_none(db):
    assert await BudgetLedger.recompute_spent(db, 9999) is None


def test_spent_has_no_public_setter():
    from budget_guard.models.transaction import Budget

    budget = Budget(user_id=USER_ID, category="Fun", budget=10)
    with pytest.raises(AttributeError):
        budget.spent = 5
