import logging
from typing import Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from budget_guard.models.transaction import Transaction, Budget
from budget_guard.schemas.budget import BudgetSnapshot

logger = logging.getLogger(__name__)


class BudgetLedger:
    """Sole writer of Budget.spent.

    `spent` is a materialized view over the transaction table: the sum of
    abs(amount) over every expense currently linked to the budget. It is always
    re-derived from scratch, never adjusted by deltas, so calling
    `recompute_spent` any number of times in any order converges.
    """

    @staticmethod
    async def linked_expense_total(db: AsyncSession, budget_id: int) -> float:
        query = select(func.coalesce(func.sum(func.abs(Transaction.amount)), 0.0)).where(
            and_(
                Transaction.budget_id == budget_id,
                Transaction.type == 'expense'
            )
        )
        res = await db.execute(query)
        return float(res.scalar() or 0.0)

    @staticmethod
    async def recompute_spent(db: AsyncSession, budget_id: int) -> Optional[BudgetSnapshot]:
        """Re-derive and store `spent` for one budget.

        Returns the fresh snapshot, or None when the budget does not exist.
        Store errors propagate; deciding whether they are fatal is the caller's job.
        """
        res = await db.execute(select(Budget).where(Budget.id == budget_id))
        budget = res.scalar_one_or_none()
        if budget is None:
            logger.warning("Recompute skipped: budget %s not found", budget_id)
            return None

        total = await BudgetLedger.linked_expense_total(db, budget_id)
        budget._spent = total

        await db.commit()
        await db.refresh(budget)

        logger.debug("Budget %s spent recomputed: %.2f of %.2f", budget_id, budget.spent, budget.budget)
        return BudgetSnapshot.model_validate(budget)
