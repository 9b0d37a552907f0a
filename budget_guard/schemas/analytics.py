from pydantic import BaseModel, ConfigDict
from typing import Dict


class SpendingSummary(BaseModel):
    user_id: int
    income: float
    expenses: float
    net_flow: float
    transaction_count: int
    breakdown: Dict[str, float]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "user_id": 1,
            "income": 4400.0,
            "expenses": 1535.0,
            "net_flow": 2865.0,
            "transaction_count": 8,
            "breakdown": {"Housing": 850.0, "Food & Dining": 320.0}
        }
    })
