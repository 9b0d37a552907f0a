import logging
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from budget_guard.config import settings
from budget_guard.models.transaction import Transaction, Budget
from budget_guard.services.reconciliation import ReconciliationEngine, signed_amount

logger = logging.getLogger(__name__)

DEMO_BUDGETS = [
    {"category": "Food & Dining", "budget": 800, "icon": "ri-restaurant-line", "color": "bg-blue-500",
     "description": "Restaurants, groceries, and food delivery"},
    {"category": "Transportation", "budget": 400, "icon": "ri-gas-station-line", "color": "bg-teal-500",
     "description": "Gas, public transport, and ride-sharing"},
    {"category": "Entertainment", "budget": 200, "icon": "ri-film-line", "color": "bg-pink-500",
     "description": "Movies, games, and leisure activities"},
    {"category": "Shopping", "budget": 600, "icon": "ri-shopping-bag-line", "color": "bg-red-500",
     "description": "Clothes, electronics, and general shopping"},
    {"category": "Health & Fitness", "budget": 150, "icon": "ri-heart-pulse-line", "color": "bg-orange-500",
     "description": "Gym, supplements, and medical expenses"},
    {"category": "Housing", "budget": 1000, "icon": "ri-home-line", "color": "bg-yellow-500",
     "description": "Rent and household bills"},
]

DEMO_TRANSACTIONS = [
    {"amount": 3200, "description": "Monthly Salary", "category": "Salary", "type": "income", "date": datetime(2024, 8, 1)},
    {"amount": 1200, "description": "Freelance Project", "category": "Freelance", "type": "income", "date": datetime(2024, 8, 15)},
    {"amount": 850, "description": "Rent Payment", "category": "Housing", "type": "expense", "date": datetime(2024, 8, 1)},
    {"amount": 320, "description": "Grocery Shopping", "category": "Food & Dining", "type": "expense", "date": datetime(2024, 8, 5)},
    {"amount": 45, "description": "Gas Station", "category": "Transportation", "type": "expense", "date": datetime(2024, 8, 10)},
    {"amount": 89, "description": "Movie Night", "category": "Entertainment", "type": "expense", "date": datetime(2024, 8, 12)},
    {"amount": 156, "description": "Online Shopping", "category": "Shopping", "type": "expense", "date": datetime(2024, 8, 18)},
    {"amount": 75, "description": "Gym Membership", "category": "Health & Fitness", "type": "expense", "date": datetime(2024, 8, 20)},
]


async def seed_demo_data(db: AsyncSession, user_id: int = settings.DEMO_USER_ID):
    result = await db.execute(select(func.count(Budget.id)).where(Budget.user_id == user_id))
    count = result.scalar()
    if count > 0:
        logger.info("Demo user %s already has %s budgets. Skipping seed.", user_id, count)
        return

    budgets = [Budget(user_id=user_id, **b) for b in DEMO_BUDGETS]
    db.add_all(budgets)
    await db.commit()
    by_category = {b.category: b.id for b in budgets}

    transactions = []
    for t in DEMO_TRANSACTIONS:
        budget_id = by_category.get(t["category"]) if t["type"] == "expense" else None
        transactions.append(Transaction(
            user_id=user_id,
            description=t["description"],
            category=t["category"],
            amount=signed_amount(t["amount"], t["type"]),
            type=t["type"],
            date=t["date"],
            budget_id=budget_id,
        ))
    db.add_all(transactions)
    await db.commit()

    # spent is never copied from fixtures; derive it like any other mutation
    reconciled = await ReconciliationEngine.reconcile(db, [b.id for b in budgets])
    logger.info("Seeded %s budgets and %s transactions for demo user %s",
                len(reconciled.recomputed), len(transactions), user_id)
