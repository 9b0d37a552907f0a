from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from budget_guard.schemas.transaction import TransactionResponse


class BudgetCreate(BaseModel):
    category: str = Field(..., min_length=1)
    budget: float = Field(..., gt=0)
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class BudgetCreateRequest(BudgetCreate):
    user_id: int


class BudgetUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1)
    budget: Optional[float] = Field(None, gt=0)
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class BudgetSnapshot(BaseModel):
    """Budget state right after a recompute, as read by the alert rules."""
    id: int
    category: str
    budget: float
    spent: float

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def ratio(self) -> Optional[float]:
        if self.budget <= 0:
            return None
        return self.spent / self.budget


class BudgetResponse(BaseModel):
    id: int
    user_id: int
    category: str
    budget: float
    spent: float
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    transaction_count: int = 0
    percentage_used: float = 0.0
    remaining: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class BudgetDetailResponse(BudgetResponse):
    transactions: List[TransactionResponse] = []
