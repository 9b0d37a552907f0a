from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

AlertType = Literal["transaction", "budget"]
AlertPriority = Literal["low", "medium", "high", "urgent"]


class Alert(BaseModel):
    """One-shot notification handed to the notification sink. Never persisted here."""
    type: AlertType
    title: str
    message: str
    priority: AlertPriority
    category: Optional[str] = None
    amount: Optional[float] = None
    threshold: Optional[float] = None
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
