from fastapi import FastAPI
from contextlib import asynccontextmanager
from ordercoupons.core.config import settings
from ordercoupons.db.session import create_db_and_tables

# Import models to ensure they are registered with SQLModel metadata
import ordercoupons.models  # noqa: F401

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="Order and order item coupons: eligibility, discounts, stacking and usage accounting"
)

@app.get("/")
def read_root():
    return {"message": "Welcome to the Order Coupons API. Visit /docs for Swagger UI."}

from ordercoupons.routers import coupons, orders, payment

app.include_router(coupons.router, prefix="/api/v1/coupons", tags=["coupons"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(payment.router, prefix="/api/v1/payment", tags=["payment"])
