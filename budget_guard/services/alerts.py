import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from budget_guard.schemas.budget import BudgetSnapshot
from budget_guard.schemas.notification import Alert
from budget_guard.schemas.preferences import AlertThresholds, CurrencyFormat
from budget_guard.services.currency import format_currency, currency_format_for_symbol

logger = logging.getLogger(__name__)

# Fixed secondary cutoff, independent of the user's large-transaction threshold
LARGE_TRANSACTION_HIGH_PRIORITY_AMOUNT = 5000

BUDGET_URGENT_RATIO = 0.9
BUDGET_HIGH_RATIO = 0.8


def budget_priority(ratio: float) -> str:
    if ratio > BUDGET_URGENT_RATIO:
        return "urgent"
    if ratio > BUDGET_HIGH_RATIO:
        return "high"
    return "medium"


def large_transaction_priority(amount: float) -> str:
    return "high" if amount > LARGE_TRANSACTION_HIGH_PRIORITY_AMOUNT else "medium"


def percent_used(ratio: float) -> int:
    return int(Decimal(str(ratio * 100)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class AlertEvaluator:
    """Decides which alerts a freshly created transaction produces.

    Pure: reads the transaction, the budget snapshot taken after reconciliation
    and the caller-supplied thresholds, and returns 0, 1 or 2 alerts. Each rule is
    evaluated on its own, so a failure in one still lets the other fire.
    """

    @staticmethod
    def large_transaction_alert(transaction, thresholds: AlertThresholds,
                                currency: CurrencyFormat) -> Optional[Alert]:
        if transaction.type != "expense" or not thresholds.large_transactions:
            return None

        amount = abs(transaction.amount)
        if amount < thresholds.large_transaction_threshold:
            return None

        return Alert(
            type="transaction",
            title="Large Transaction Detected",
            message=f"A transaction of {format_currency(amount, currency)} was recorded at {transaction.description}",
            priority=large_transaction_priority(amount),
            category=transaction.category,
            amount=amount,
            threshold=thresholds.large_transaction_threshold,
            action_url="/transactions",
            action_text="View Transaction",
        )

    @staticmethod
    def budget_threshold_alert(transaction, budget: Optional[BudgetSnapshot], thresholds: AlertThresholds,
                               currency: CurrencyFormat) -> Optional[Alert]:
        if transaction.type != "expense" or budget is None or not thresholds.budget_alerts:
            return None
        if transaction.budget_id != budget.id:
            return None

        ratio = budget.ratio
        if ratio is None or ratio < thresholds.budget_threshold:
            return None

        return Alert(
            type="budget",
            title=f"Budget Alert: {budget.category}",
            message=(
                f"You've spent {percent_used(ratio)}% of your {budget.category.lower()} budget "
                f"({format_currency(budget.spent, currency)} of {format_currency(budget.budget, currency)})"
            ),
            priority=budget_priority(ratio),
            category=budget.category,
            amount=budget.spent,
            threshold=thresholds.budget_threshold,
            action_url="/budgets",
            action_text="View Budget",
        )

    @staticmethod
    def evaluate(transaction, budget: Optional[BudgetSnapshot], thresholds: AlertThresholds,
                 currency: Optional[CurrencyFormat] = None) -> List[Alert]:
        currency = currency_format_for_symbol(thresholds.currency_symbol, currency)

        rules = (
            ("large_transaction", lambda: AlertEvaluator.large_transaction_alert(transaction, thresholds, currency)),
            ("budget_threshold", lambda: AlertEvaluator.budget_threshold_alert(transaction, budget, thresholds, currency)),
        )

        alerts = []
        for name, rule in rules:
            try:
                alert = rule()
            except Exception:
                logger.exception("Alert rule %s failed for transaction %s", name, getattr(transaction, "id", None))
                continue
            if alert is not None:
                alerts.append(alert)
        return alerts
