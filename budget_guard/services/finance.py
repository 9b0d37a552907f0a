import logging
from typing import Optional

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func, and_

from budget_guard.core.exceptions import ConflictError, NotFoundError
from budget_guard.models.transaction import Transaction, Budget
from budget_guard.schemas.analytics import SpendingSummary
from budget_guard.schemas.budget import (
    BudgetCreate, BudgetUpdate, BudgetResponse, BudgetDetailResponse, BudgetSnapshot
)
from budget_guard.schemas.preferences import AlertThresholds, CurrencyFormat
from budget_guard.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionResponse, TransactionCreateResponse
)
from budget_guard.services.alerts import AlertEvaluator
from budget_guard.services.ledger import BudgetLedger
from budget_guard.services.reconciliation import ReconciliationEngine

logger = logging.getLogger(__name__)


class FinanceService:
    @staticmethod
    async def create_transaction(db: AsyncSession, user_id: int, data: TransactionCreate,
                                 thresholds: AlertThresholds,
                                 currency: Optional[CurrencyFormat] = None) -> TransactionCreateResponse:
        # 1. Persist (validation raises before anything is written)
        persisted = await ReconciliationEngine.persist_create(db, user_id, data)
        transaction = TransactionResponse.model_validate(persisted.transaction)

        # 2. Reconcile the linked budget
        reconciled = await ReconciliationEngine.reconcile(db, persisted.affected_budget_ids)
        if not reconciled.ok:
            logger.warning("Transaction %s saved but budgets %s were not recomputed",
                           transaction.id, reconciled.failed)

        # 3. Alerts are best-effort; the saved transaction is returned regardless
        try:
            notifications = AlertEvaluator.evaluate(
                transaction, reconciled.snapshot_for(transaction.budget_id), thresholds, currency
            )
        except Exception:
            logger.exception("Alert evaluation failed for transaction %s", transaction.id)
            notifications = []

        return TransactionCreateResponse(transaction=transaction, notifications=notifications)

    @staticmethod
    async def update_transaction(db: AsyncSession, transaction_id: int,
                                 changes: TransactionUpdate) -> TransactionResponse:
        persisted = await ReconciliationEngine.persist_update(db, transaction_id, changes)
        # Read before reconciling: a failed recompute rolls back and expires the session
        transaction = TransactionResponse.model_validate(persisted.transaction)
        await ReconciliationEngine.reconcile(db, persisted.affected_budget_ids)
        return transaction

    @staticmethod
    async def delete_transaction(db: AsyncSession, transaction_id: int) -> None:
        persisted = await ReconciliationEngine.persist_delete(db, transaction_id)
        await ReconciliationEngine.reconcile(db, persisted.affected_budget_ids)

    @staticmethod
    async def recompute_spent(db: AsyncSession, budget_id: int) -> BudgetSnapshot:
        snapshot = await BudgetLedger.recompute_spent(db, budget_id)
        if snapshot is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        return snapshot

    @staticmethod
    async def list_transactions(db: AsyncSession, user_id: int, budget_id: Optional[int] = None):
        query = select(Transaction).where(Transaction.user_id == user_id)
        if budget_id is not None:
            query = query.where(Transaction.budget_id == budget_id)
        query = query.order_by(desc(Transaction.date), desc(Transaction.id))
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    def _budget_response(budget: Budget, transaction_count: int = 0) -> BudgetResponse:
        if budget.budget > 0:
            pct = (budget.spent / budget.budget) * 100
            rem = budget.budget - budget.spent
        else:
            pct = 0.0
            rem = 0.0

        return BudgetResponse(
            id=budget.id,
            user_id=budget.user_id,
            category=budget.category,
            budget=budget.budget,
            spent=budget.spent,
            icon=budget.icon,
            color=budget.color,
            description=budget.description,
            transaction_count=transaction_count,
            percentage_used=round(pct, 1),
            remaining=round(rem, 2)
        )

    @staticmethod
    async def _get_budget(db: AsyncSession, budget_id: int, user_id: Optional[int] = None) -> Budget:
        query = select(Budget).where(Budget.id == budget_id)
        if user_id is not None:
            query = query.where(Budget.user_id == user_id)
        res = await db.execute(query)
        budget = res.scalar_one_or_none()
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        return budget

    @staticmethod
    async def _ensure_category_free(db: AsyncSession, user_id: int, category: str,
                                    exclude_id: Optional[int] = None):
        query = select(Budget.id).where(and_(Budget.user_id == user_id, Budget.category == category))
        if exclude_id is not None:
            query = query.where(Budget.id != exclude_id)
        res = await db.execute(query)
        if res.first() is not None:
            raise ConflictError("Budget for this category already exists")

    @staticmethod
    async def list_budgets(db: AsyncSession, user_id: int) -> list[BudgetResponse]:
        res = await db.execute(select(Budget).where(Budget.user_id == user_id).order_by(Budget.category))
        budgets = res.scalars().all()

        counts_query = select(Transaction.budget_id, func.count(Transaction.id)).where(
            and_(
                Transaction.user_id == user_id,
                Transaction.type == 'expense',
                Transaction.budget_id.is_not(None)
            )
        ).group_by(Transaction.budget_id)
        counts_res = await db.execute(counts_query)
        counts = {bid: n for bid, n in counts_res.all()}

        return [FinanceService._budget_response(b, counts.get(b.id, 0)) for b in budgets]

    @staticmethod
    async def get_budget(db: AsyncSession, user_id: int, budget_id: int) -> BudgetDetailResponse:
        budget = await FinanceService._get_budget(db, budget_id, user_id)
        transactions = await FinanceService.list_transactions(db, user_id, budget_id)
        base = FinanceService._budget_response(
            budget, sum(1 for t in transactions if t.type == 'expense')
        )
        return BudgetDetailResponse(
            **base.model_dump(),
            transactions=[TransactionResponse.model_validate(t) for t in transactions]
        )

    @staticmethod
    async def create_budget(db: AsyncSession, user_id: int, data: BudgetCreate) -> BudgetResponse:
        category = data.category.strip()
        await FinanceService._ensure_category_free(db, user_id, category)

        budget = Budget(
            user_id=user_id,
            category=category,
            budget=data.budget,
            icon=data.icon,
            color=data.color,
            description=data.description
        )
        db.add(budget)
        await db.commit()
        await db.refresh(budget)

        logger.info("Budget %s created for user %s (%s)", budget.id, user_id, category)
        return FinanceService._budget_response(budget)

    @staticmethod
    async def update_budget(db: AsyncSession, budget_id: int, changes: BudgetUpdate) -> BudgetResponse:
        budget = await FinanceService._get_budget(db, budget_id)
        updates = changes.model_dump(exclude_unset=True)

        if updates.get("category"):
            updates["category"] = updates["category"].strip()
            await FinanceService._ensure_category_free(db, budget.user_id, updates["category"], exclude_id=budget.id)

        for key, value in updates.items():
            if key in ("category", "budget") and value is None:
                continue
            setattr(budget, key, value)

        await db.commit()
        await db.refresh(budget)

        count = await db.execute(select(func.count(Transaction.id)).where(
            and_(Transaction.budget_id == budget.id, Transaction.type == 'expense')
        ))
        return FinanceService._budget_response(budget, count.scalar() or 0)

    @staticmethod
    async def delete_budget(db: AsyncSession, budget_id: int) -> None:
        budget = await FinanceService._get_budget(db, budget_id)
        await db.delete(budget)
        await db.commit()
        # Linked transactions keep their budget_id and are left orphaned
        logger.info("Budget %s deleted", budget_id)

    @staticmethod
    async def get_history_df(db: AsyncSession, user_id: int) -> pd.DataFrame:
        query = select(Transaction).where(Transaction.user_id == user_id).order_by(Transaction.date)
        result = await db.execute(query)
        transactions = result.scalars().all()
        if not transactions:
            return pd.DataFrame(columns=["id", "category", "amount", "type", "date", "budget_id"])

        return pd.DataFrame([
            {
                "id": t.id,
                "category": t.category,
                "amount": t.amount,
                "type": t.type,
                "date": t.date,
                "budget_id": t.budget_id,
            }
            for t in transactions
        ])

    @staticmethod
    async def spending_summary(db: AsyncSession, user_id: int) -> SpendingSummary:
        df = await FinanceService.get_history_df(db, user_id)
        df["amount"] = df["amount"].astype(float)

        expenses_df = df[df["type"] == "expense"]
        income = float(df.loc[df["type"] == "income", "amount"].abs().sum())
        expenses = float(expenses_df["amount"].abs().sum())

        breakdown = (
            expenses_df.assign(amount=expenses_df["amount"].abs())
            .groupby("category")["amount"].sum()
            .sort_values(ascending=False)
        )

        return SpendingSummary(
            user_id=user_id,
            income=round(income, 2),
            expenses=round(expenses, 2),
            net_flow=round(income - expenses, 2),
            transaction_count=len(df),
            breakdown={str(cat): round(float(total), 2) for cat, total in breakdown.items()}
        )
