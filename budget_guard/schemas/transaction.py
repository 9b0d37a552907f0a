from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from budget_guard.schemas.notification import Alert

TransactionType = Literal["expense", "income"]


def keep_wall_clock(v: Optional[datetime]) -> Optional[datetime]:
    # The value the user picked is stored as-is; an offset is dropped, never converted
    if v is not None and v.tzinfo is not None:
        return v.replace(tzinfo=None)
    return v


class TransactionCreate(BaseModel):
    description: str
    category: str
    amount: float
    type: TransactionType
    date: Optional[datetime] = None
    budget_id: Optional[int] = None

    @field_validator('date')
    @classmethod
    def date_is_wall_clock(cls, v: Optional[datetime]) -> Optional[datetime]:
        return keep_wall_clock(v)


class TransactionCreateRequest(TransactionCreate):
    user_id: int


class TransactionUpdate(BaseModel):
    description: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[TransactionType] = None
    date: Optional[datetime] = None
    budget_id: Optional[int] = None

    @field_validator('date')
    @classmethod
    def date_is_wall_clock(cls, v: Optional[datetime]) -> Optional[datetime]:
        return keep_wall_clock(v)


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    description: str
    category: str
    amount: float
    type: TransactionType
    date: datetime
    budget_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionCreateResponse(BaseModel):
    transaction: TransactionResponse
    notifications: List[Alert] = Field(default_factory=list)
