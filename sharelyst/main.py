import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sharelyst.api.v1.routes.group import router as group_router
from sharelyst.api.v1.routes.settlement import router as settlement_router
from sharelyst.api.v1.routes.system import router as system_router
from sharelyst.api.v1.routes.transaction import router as transaction_router
from sharelyst.core.config import settings
from sharelyst.core.db_check import wait_for_db
from sharelyst.core.exceptions import SharelystError, UnbalancedLedgerError
from sharelyst.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    await wait_for_db(retries=settings.DB_CONNECT_RETRIES)
    yield


app = FastAPI(title="Sharelyst Backend", lifespan=lifespan)


@app.exception_handler(SharelystError)
async def sharelyst_error_handler(request: Request, exc: SharelystError):
    if isinstance(exc, UnbalancedLedgerError):
        # already logged with context where it was raised
        logger.error("Unbalanced ledger on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    return {"message": "Sharelyst Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(transaction_router, prefix="/api/v1/transactions")
app.include_router(settlement_router, prefix="/api/v1/transactions")
