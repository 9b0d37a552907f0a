from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, func
from budget_guard.core.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)

    description = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    # Negative for expenses, positive for income
    amount = Column(Float, nullable=False)
    type = Column(String, nullable=False, index=True)
    # Wall-clock value as picked by the user, never converted
    date = Column(DateTime(timezone=False), nullable=False, index=True)

    # No cascade: deleting a budget leaves its transactions orphaned
    budget_id = Column(Integer, ForeignKey("budgets.id"), nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_budget_user_category"),
        # Deleted ids are never reused; orphaned transactions must not attach to a new budget
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)

    category = Column(String, nullable=False, index=True)
    budget = Column(Float, nullable=False)

    # Materialized sum of linked expenses. Only BudgetLedger assigns _spent.
    _spent = Column("spent", Float, nullable=False, default=0.0)

    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def spent(self) -> float:
        return self._spent or 0.0
