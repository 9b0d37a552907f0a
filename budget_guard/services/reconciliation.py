import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_guard.core.exceptions import NotFoundError, TransactionValidationError
from budget_guard.models.transaction import Transaction, Budget
from budget_guard.schemas.budget import BudgetSnapshot
from budget_guard.schemas.transaction import TransactionCreate, TransactionUpdate
from budget_guard.services.ledger import BudgetLedger

logger = logging.getLogger(__name__)

EXPENSE = "expense"
INCOME = "income"

# Fields whose change can move a transaction's contribution to some budget's spent
RECONCILED_FIELDS = frozenset({"amount", "type", "budget_id"})

NO_BUDGETS_MESSAGE = "Create a budget first before adding expenses."
BUDGET_REQUIRED_MESSAGE = "Budget required for expense: please select a budget for this expense."


@dataclass(frozen=True)
class Linkage:
    """The part of a transaction that determines which budget it counts against."""
    type: str
    budget_id: Optional[int]

    @property
    def expense_budget_id(self) -> Optional[int]:
        if self.type == EXPENSE and self.budget_id is not None:
            return self.budget_id
        return None


@dataclass
class PersistResult:
    transaction: Transaction
    before: Optional[Linkage]
    after: Optional[Linkage]
    reconcile: bool = True

    @property
    def affected_budget_ids(self) -> Tuple[int, ...]:
        if not self.reconcile:
            return ()
        ids = []
        for linkage in (self.before, self.after):
            bid = linkage.expense_budget_id if linkage else None
            if bid is not None and bid not in ids:
                ids.append(bid)
        return tuple(ids)


@dataclass
class ReconcileResult:
    recomputed: Dict[int, BudgetSnapshot] = field(default_factory=dict)
    missing: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    def snapshot_for(self, budget_id: Optional[int]) -> Optional[BudgetSnapshot]:
        if budget_id is None:
            return None
        return self.recomputed.get(budget_id)

    @property
    def ok(self) -> bool:
        return not self.failed


def signed_amount(amount: float, trx_type: str) -> float:
    return -abs(amount) if trx_type == EXPENSE else abs(amount)


class ReconciliationEngine:
    """Persist -> reconcile stages for every transaction mutation.

    Each persist stage validates fail-fast, commits the transaction write, and
    reports which linkage it had before and after. `reconcile` then recomputes
    every budget the mutation touched. A recompute failure is logged and left for
    the next recompute to correct; it never undoes the committed write.
    """

    @staticmethod
    async def count_budgets(db: AsyncSession, user_id: int) -> int:
        res = await db.execute(select(func.count(Budget.id)).where(Budget.user_id == user_id))
        return res.scalar() or 0

    @staticmethod
    async def user_owns_budget(db: AsyncSession, user_id: int, budget_id: int) -> bool:
        res = await db.execute(
            select(Budget.id).where(and_(Budget.id == budget_id, Budget.user_id == user_id))
        )
        return res.scalar_one_or_none() is not None

    @staticmethod
    def check_required_fields(values: dict) -> None:
        missing = [
            name for name in ("description", "category", "amount", "type")
            if values.get(name) is None or (isinstance(values[name], str) and not values[name].strip())
        ]
        if missing:
            raise TransactionValidationError(f"Missing required fields: {', '.join(missing)}")
        if values["type"] not in (EXPENSE, INCOME):
            raise TransactionValidationError(f"Unknown transaction type: {values['type']}")

    @staticmethod
    def check_client_amount(amount) -> None:
        # The sign comes from the type; clients always send the absolute value
        if amount is not None and amount <= 0:
            raise TransactionValidationError("Amount must be greater than zero")

    @staticmethod
    async def validate(db: AsyncSession, user_id: int, values: dict,
                       check_linkage: bool = True, check_budget_id: bool = True) -> None:
        ReconciliationEngine.check_required_fields(values)

        budget_id = values.get("budget_id")
        if check_linkage and values["type"] == EXPENSE:
            if await ReconciliationEngine.count_budgets(db, user_id) == 0:
                raise TransactionValidationError(NO_BUDGETS_MESSAGE)
            if budget_id is None:
                raise TransactionValidationError(BUDGET_REQUIRED_MESSAGE)

        if check_budget_id and budget_id is not None and not await ReconciliationEngine.user_owns_budget(db, user_id, budget_id):
            raise TransactionValidationError(f"Budget {budget_id} does not exist for this user")

    @staticmethod
    async def persist_create(db: AsyncSession, user_id: int, data: TransactionCreate) -> PersistResult:
        values = data.model_dump()
        ReconciliationEngine.check_required_fields(values)
        ReconciliationEngine.check_client_amount(values["amount"])
        await ReconciliationEngine.validate(db, user_id, values)

        db_obj = Transaction(
            user_id=user_id,
            description=values["description"].strip(),
            category=values["category"].strip(),
            amount=signed_amount(values["amount"], values["type"]),
            type=values["type"],
            date=values["date"] or datetime.now(),
            budget_id=values["budget_id"],
        )

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)

        return PersistResult(
            transaction=db_obj,
            before=None,
            after=Linkage(db_obj.type, db_obj.budget_id),
        )

    @staticmethod
    async def get_transaction(db: AsyncSession, transaction_id: int) -> Transaction:
        res = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
        transaction = res.scalar_one_or_none()
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    @staticmethod
    async def persist_update(db: AsyncSession, transaction_id: int, changes: TransactionUpdate) -> PersistResult:
        transaction = await ReconciliationEngine.get_transaction(db, transaction_id)
        before = Linkage(transaction.type, transaction.budget_id)

        updates = changes.model_dump(exclude_unset=True)
        ReconciliationEngine.check_client_amount(updates.get("amount"))
        merged = {
            "description": transaction.description,
            "category": transaction.category,
            "amount": transaction.amount,
            "type": transaction.type,
            "date": transaction.date,
            "budget_id": transaction.budget_id,
        }
        merged.update(updates)
        # A type change flips the stored sign even when the amount itself is untouched
        if merged["amount"] is not None and merged["type"] in (EXPENSE, INCOME):
            merged["amount"] = signed_amount(merged["amount"], merged["type"])

        touched = RECONCILED_FIELDS.intersection(updates)
        if touched:
            # An orphaned expense keeps its dangling budget_id; only a new link is checked
            await ReconciliationEngine.validate(
                db, transaction.user_id, merged,
                check_linkage=bool({"type", "budget_id"}.intersection(updates)),
                check_budget_id="budget_id" in updates,
            )
        else:
            ReconciliationEngine.check_required_fields(merged)

        for key in updates:
            value = merged[key]
            if isinstance(value, str):
                value = value.strip()
            if key == "date" and value is None:
                continue
            setattr(transaction, key, value)
        if "type" in updates and "amount" not in updates:
            transaction.amount = merged["amount"]

        await db.commit()
        await db.refresh(transaction)

        return PersistResult(
            transaction=transaction,
            before=before,
            after=Linkage(transaction.type, transaction.budget_id),
            reconcile=bool(touched),
        )

    @staticmethod
    async def persist_delete(db: AsyncSession, transaction_id: int) -> PersistResult:
        transaction = await ReconciliationEngine.get_transaction(db, transaction_id)
        before = Linkage(transaction.type, transaction.budget_id)

        await db.delete(transaction)
        await db.commit()

        return PersistResult(transaction=transaction, before=before, after=None)

    @staticmethod
    async def reconcile(db: AsyncSession, budget_ids) -> ReconcileResult:
        result = ReconcileResult()
        for budget_id in budget_ids:
            try:
                snapshot = await BudgetLedger.recompute_spent(db, budget_id)
            except SQLAlchemyError:
                logger.exception("Recompute of budget %s failed; spent may be stale until the next recompute", budget_id)
                await db.rollback()
                result.failed.append(budget_id)
                continue

            if snapshot is None:
                result.missing.append(budget_id)
            else:
                result.recomputed[budget_id] = snapshot
        return result
