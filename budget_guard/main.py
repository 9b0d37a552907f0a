from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from budget_guard.config import settings
from budget_guard.core.database import init_db, AsyncSessionLocal
from budget_guard.core.exceptions import ConflictError, NotFoundError, TransactionValidationError
from budget_guard.core.log import configure_logging
from budget_guard.core.seed import seed_demo_data
from budget_guard.api.router import api_router

configure_logging(settings.LOG_LEVEL)

tags_metadata = [
    {
        "name": "Transactions",
        "description": "Income and expense records. Creating an expense reconciles its budget and may raise alerts.",
    },
    {
        "name": "Budgets",
        "description": "Category budgets and their derived spent totals.",
    },
    {
        "name": "Analytics",
        "description": "Spending summaries.",
    },
    {
        "name": "System",
        "description": "System endpoints.",
    },
]

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
### API documentation

Personal budgeting service: transactions, category budgets kept in sync
with their transactions, and spending alerts.

    """,
    version=settings.VERSION,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TransactionValidationError)
async def validation_error_handler(request: Request, exc: TransactionValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.on_event("startup")
async def startup():
    await init_db()
    if settings.SEED_DEMO_DATA:
        async with AsyncSessionLocal() as session:
            await seed_demo_data(session)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/health", tags=["System"])
def health():
    return {
        "status": "operational",
        "version": settings.VERSION
    }
