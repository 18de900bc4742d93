import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from findesk.config import settings
from findesk.middleware.exceptions import register_exception_handlers
from findesk.routers import (
    audit_logs, billing_records, clients, dashboard, employees, health, invoices, payroll,
)
from findesk.utils.cache import close_redis

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("findesk")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("FinDesk starting (%s)", settings.environment)
    yield
    await close_redis()
    logger.info("FinDesk stopped")


app = FastAPI(
    title="FinDesk",
    description="Finance desk: invoicing, billing records, client master and payroll",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
app.include_router(billing_records.router, prefix="/api/billing-records", tags=["billing"])
app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
app.include_router(employees.router, prefix="/api/employees", tags=["employees"])
app.include_router(payroll.router, prefix="/api/payroll", tags=["payroll"])
app.include_router(audit_logs.router, prefix="/api/audit-logs", tags=["audit-logs"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
