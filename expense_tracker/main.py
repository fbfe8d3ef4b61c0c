from fastapi import FastAPI
import expense_tracker.db.base  # noqa: F401
from expense_tracker.core.config import configure_logging
from expense_tracker.core.errors import register_exception_handlers
from expense_tracker.api.v1.routes.system import router as system_router
from expense_tracker.api.v1.routes.user import router as user_router
from expense_tracker.api.v1.routes.group import router as group_router
from expense_tracker.api.v1.routes.expense import router as expense_router
from expense_tracker.api.v1.routes.balances import router as balances_router

configure_logging()

app = FastAPI(title="Expense Tracker Backend")
register_exception_handlers(app)

@app.get("/")
async def root():
    return {"message": "Expense Tracker Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(user_router, prefix="/api/v1/users")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/expense")
app.include_router(balances_router, prefix="/api/v1/balances")
