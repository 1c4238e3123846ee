# tsoam/main.py
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Ensure all SQLAlchemy models are imported so relationships resolve
import tsoam.models  # noqa: F401

from tsoam import __version__
from tsoam.api import (
    account_requests,
    appointments,
    auth,
    dashboard,
    events,
    finance,
    homecells,
    hr,
    inventory,
    leave,
    members,
    messages,
    modules,
    payroll_approval,
    system_logs,
    welfare,
)
from tsoam.api.system import router as system_router
from tsoam.config import configure_logging, get_settings

configure_logging()
logger = logging.getLogger("tsoam")

app = FastAPI(title="TSOAM Church Management API", version=__version__)

# --- CORS for the web client ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().client_urls,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# Ops (/health, /version), unprefixed
app.include_router(system_router)

API_PREFIX = "/api"

app.include_router(auth.router, prefix=API_PREFIX)              # /api/auth
app.include_router(account_requests.router, prefix=API_PREFIX)  # /api/account-requests
app.include_router(members.router, prefix=API_PREFIX)           # /api/members
app.include_router(finance.router, prefix=API_PREFIX)           # /api/finance
app.include_router(payroll_approval.router, prefix=API_PREFIX)  # /api/finance/payroll-approvals
app.include_router(hr.router, prefix=API_PREFIX)                # /api/hr
app.include_router(leave.router, prefix=API_PREFIX)             # /api/leave
app.include_router(events.router, prefix=API_PREFIX)            # /api/events
app.include_router(appointments.router, prefix=API_PREFIX)      # /api/appointments
app.include_router(welfare.router, prefix=API_PREFIX)           # /api/welfare
app.include_router(messages.router, prefix=API_PREFIX)          # /api/messages
app.include_router(homecells.router, prefix=API_PREFIX)         # /api/homecells
app.include_router(inventory.router, prefix=API_PREFIX)         # /api/inventory
app.include_router(modules.router, prefix=API_PREFIX)           # /api/modules
app.include_router(system_logs.router, prefix=API_PREFIX)       # /api/system-logs
app.include_router(dashboard.router, prefix=API_PREFIX)         # /api/dashboard
