"""FastAPI app entrypoint."""
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from settleup.database import engine, Base
from settleup.errors import LedgerInvariantError, LedgerValidationError
from settleup.routers import auth, groups, expenses, balances

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in _origins_env.split(",") if o.strip()] if _origins_env else ["*"]

app = FastAPI(
    title="SettleUp API",
    description="Track shared expenses in a group, see who owes whom and settle up in as few payments as possible.",
    version="1.0.0",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api")
app.include_router(groups.router, prefix="/api")
app.include_router(expenses.router, prefix="/api")
app.include_router(balances.router, prefix="/api")


@app.exception_handler(LedgerValidationError)
async def ledger_validation_error(request: Request, exc: LedgerValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(LedgerInvariantError)
async def ledger_invariant_error(request: Request, exc: LedgerInvariantError):
    logger.error("Ledger invariant broken while serving %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Ledger data is inconsistent"})


@app.get("/")
def root():
    return {"message": "SettleUp API", "docs": "/docs"}
