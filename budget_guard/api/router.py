from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from budget_guard.core.database import get_db
from budget_guard.schemas.analytics import SpendingSummary
from budget_guard.schemas.budget import (
    BudgetCreateRequest, BudgetUpdate, BudgetResponse, BudgetDetailResponse, BudgetSnapshot
)
from budget_guard.schemas.transaction import (
    TransactionCreateRequest, TransactionUpdate, TransactionResponse, TransactionCreateResponse
)
from budget_guard.services.finance import FinanceService
from budget_guard.services.preferences import SettingsProvider, get_settings_provider

api_router = APIRouter()


@api_router.post("/transactions", response_model=TransactionCreateResponse, tags=["Transactions"])
async def add_transaction(
        trx: TransactionCreateRequest,
        db: AsyncSession = Depends(get_db),
        provider: SettingsProvider = Depends(get_settings_provider)
):
    return await FinanceService.create_transaction(
        db,
        trx.user_id,
        trx,
        thresholds=provider.get_alert_thresholds(trx.user_id),
        currency=provider.get_currency_format(trx.user_id)
    )


@api_router.get("/transactions", response_model=List[TransactionResponse], tags=["Transactions"])
async def get_transactions(user_id: int, budget_id: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    return await FinanceService.list_transactions(db, user_id, budget_id)


@api_router.patch("/transactions/{transaction_id}", response_model=TransactionResponse, tags=["Transactions"])
async def update_transaction(transaction_id: int, changes: TransactionUpdate, db: AsyncSession = Depends(get_db)):
    return await FinanceService.update_transaction(db, transaction_id, changes)


@api_router.delete("/transactions/{transaction_id}", status_code=204, tags=["Transactions"])
async def delete_transaction(transaction_id: int, db: AsyncSession = Depends(get_db)):
    await FinanceService.delete_transaction(db, transaction_id)
    return Response(status_code=204)


@api_router.get("/budgets", response_model=List[BudgetResponse], tags=["Budgets"])
async def get_budgets(user_id: int, db: AsyncSession = Depends(get_db)):
    return await FinanceService.list_budgets(db, user_id)


@api_router.post("/budgets", response_model=BudgetResponse, status_code=201, tags=["Budgets"])
async def create_budget(budget: BudgetCreateRequest, db: AsyncSession = Depends(get_db)):
    return await FinanceService.create_budget(db, budget.user_id, budget)


@api_router.get("/budgets/{budget_id}", response_model=BudgetDetailResponse, tags=["Budgets"])
async def get_budget(budget_id: int, user_id: int, db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_budget(db, user_id, budget_id)


@api_router.patch("/budgets/{budget_id}", response_model=BudgetResponse, tags=["Budgets"])
async def update_budget(budget_id: int, changes: BudgetUpdate, db: AsyncSession = Depends(get_db)):
    return await FinanceService.update_budget(db, budget_id, changes)


@api_router.delete("/budgets/{budget_id}", status_code=204, tags=["Budgets"])
async def delete_budget(budget_id: int, db: AsyncSession = Depends(get_db)):
    await FinanceService.delete_budget(db, budget_id)
    return Response(status_code=204)


@api_router.post("/budgets/{budget_id}/recompute", response_model=BudgetSnapshot, tags=["Budgets"])
async def recompute_budget(budget_id: int, db: AsyncSession = Depends(get_db)):
    return await FinanceService.recompute_spent(db, budget_id)


@api_router.get("/analytics/summary", response_model=SpendingSummary, tags=["Analytics"])
async def get_spending_summary(user_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    return await FinanceService.spending_summary(db, user_id)
