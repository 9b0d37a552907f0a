"""Tests for budget management, spending summary and demo seeding."""

from datetime import datetime

import pytest

from budget_guard.core.exceptions import ConflictError, NotFoundError
from budget_guard.core.seed import DEMO_BUDGETS, seed_demo_data
from budget_guard.schemas.budget import BudgetCreate, BudgetUpdate
from budget_guard.schemas.transaction import TransactionCreate
from budget_guard.services.finance import FinanceService

from conftest import USER_ID, OTHER_USER_ID


async def add_expense(db, budget_id, amount, thresholds, category="Groceries"):
    return await FinanceService.create_transaction(
        db, USER_ID,
        TransactionCreate(description="Shop", category=category, amount=amount, type="expense",
                          budget_id=budget_id, date=datetime(2024, 8, 5)),
        thresholds
    )


class TestBudgets:
    @pytest.mark.asyncio
    async def test_create_starts_empty(self, db):
        budget = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Travel", budget=500))
        assert budget.spent == 0
        assert budget.remaining == 500
        assert budget.percentage_used == 0

    @pytest.mark.asyncio
    async def test_duplicate_category_conflicts(self, db):
        await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Travel", budget=500))
        with pytest.raises(ConflictError):
            await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Travel", budget=100))

    @pytest.mark.asyncio
    async def test_same_category_for_other_user_allowed(self, db):
        await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Travel", budget=500))
        other = await FinanceService.create_budget(db, OTHER_USER_ID, BudgetCreate(category="Travel", budget=50))
        assert other.user_id == OTHER_USER_ID

    @pytest.mark.asyncio
    async def test_list_reports_progress_and_counts(self, db, thresholds):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Books", budget=100))
        await add_expense(db, food.id, 100, thresholds, category="Food")
        await add_expense(db, food.id, 50, thresholds, category="Food")

        budgets = await FinanceService.list_budgets(db, USER_ID)

        assert [b.category for b in budgets] == ["Books", "Food"]
        food_row = budgets[1]
        assert food_row.spent == pytest.approx(150)
        assert food_row.transaction_count == 2
        assert food_row.percentage_used == 37.5
        assert food_row.remaining == 250

    @pytest.mark.asyncio
    async def test_get_budget_with_transactions(self, db, thresholds):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        await add_expense(db, food.id, 10, thresholds, category="Food")

        detail = await FinanceService.get_budget(db, USER_ID, food.id)

        assert detail.transaction_count == 1
        assert [t.amount for t in detail.transactions] == [-10]

    @pytest.mark.asyncio
    async def test_get_budget_of_other_user(self, db):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        with pytest.raises(NotFoundError):
            await FinanceService.get_budget(db, OTHER_USER_ID, food.id)

    @pytest.mark.asyncio
    async def test_update_limit_keeps_spent(self, db, thresholds):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        await add_expense(db, food.id, 100, thresholds, category="Food")

        updated = await FinanceService.update_budget(db, food.id, BudgetUpdate(budget=200, color="bg-red-500"))

        assert updated.budget == 200
        assert updated.spent == pytest.approx(100)
        assert updated.percentage_used == 50
        assert updated.color == "bg-red-500"

    @pytest.mark.asyncio
    async def test_rename_onto_existing_category_conflicts(self, db):
        await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        books = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Books", budget=100))
        with pytest.raises(ConflictError):
            await FinanceService.update_budget(db, books.id, BudgetUpdate(category="Food"))

    @pytest.mark.asyncio
    async def test_delete_orphans_transactions(self, db, thresholds):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        created = await add_expense(db, food.id, 10, thresholds, category="Food")

        await FinanceService.delete_budget(db, food.id)

        rows = await FinanceService.list_transactions(db, USER_ID)
        assert [t.id for t in rows] == [created.transaction.id]
        with pytest.raises(NotFoundError):
            await FinanceService.delete_budget(db, food.id)

    @pytest.mark.asyncio
    async def test_deleted_budget_id_not_reused(self, db, thresholds):
        await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Rent", budget=900))
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        await add_expense(db, food.id, 100, thresholds, category="Food")
        await FinanceService.delete_budget(db, food.id)

        fun = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Fun", budget=200))

        assert fun.id != food.id
        snapshot = await FinanceService.recompute_spent(db, fun.id)
        assert snapshot.spent == 0
        fun_row = next(b for b in await FinanceService.list_budgets(db, USER_ID) if b.id == fun.id)
        assert fun_row.transaction_count == 0


class TestSpendingSummary:
    @pytest.mark.asyncio
    async def test_summary(self, db, thresholds):
        food = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Food", budget=400))
        rent = await FinanceService.create_budget(db, USER_ID, BudgetCreate(category="Rent", budget=900))
        await add_expense(db, food.id, 20.5, thresholds, category="Food")
        await add_expense(db, food.id, 9.5, thresholds, category="Food")
        await add_expense(db, rent.id, 850, thresholds, category="Rent")
        await FinanceService.create_transaction(
            db, USER_ID, TransactionCreate(description="Pay", category="Salary", amount=3200, type="income"),
            thresholds
        )

        summary = await FinanceService.spending_summary(db, USER_ID)

        assert summary.income == 3200
        assert summary.expenses == 880
        assert summary.net_flow == 2320
        assert summary.transaction_count == 4
        assert list(summary.breakdown.items()) == [("Rent", 850.0), ("Food", 30.0)]

    @pytest.mark.asyncio
    async def test_empty_summary(self, db):
        summary = await FinanceService.spending_summary(db, USER_ID)
        assert summary.income == 0
        assert summary.expenses == 0
        assert summary.breakdown == {}


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_derives_spent(self, db):
        await seed_demo_data(db, user_id=USER_ID)

        budgets = {b.category: b for b in await FinanceService.list_budgets(db, USER_ID)}

        assert len(budgets) == len(DEMO_BUDGETS)
        assert budgets["Housing"].spent == 850
        assert budgets["Food & Dining"].spent == 320

    @pytest.mark.asyncio
    async def test_seed_runs_once(self, db):
        await seed_demo_data(db, user_id=USER_ID)
        await seed_demo_data(db, user_id=USER_ID)

        rows = await FinanceService.list_transactions(db, USER_ID)
        assert len(rows) == 8
