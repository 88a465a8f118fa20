# main.py
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from config.logging_config import configure_logging

configure_logging()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.holdings_routes import router as holdings_router
from routers.oauth_routes import router as oauth_router
from routers.plaid_routes import router as plaid_router
from routers.portfolio_routes import router as portfolio_router
from routers.symbol_routes import router as symbol_router
from routers.wishlist_routes import router as wishlist_router
from services.errors import LedgerError, UpstreamError

logger = logging.getLogger(__name__)

app = FastAPI(title="Net Worth Ledger")

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if isinstance(exc, UpstreamError):
        # provider detail goes to logs only
        logger.error("upstream_error path=%s context=%s", request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(holdings_router)
app.include_router(portfolio_router, prefix="/api/portfolio")
app.include_router(wishlist_router, prefix="/api/wishlist")
app.include_router(symbol_router, prefix="/api/symbols")
app.include_router(plaid_router, prefix="/api/plaid")
app.include_router(oauth_router, prefix="/oauth")


@app.get("/health")
def health():
    return {"status": "ok"}


# db startup
from database import Base, engine
import models  # this triggers models/__init__.py which imports all tables

Base.metadata.create_all(bind=engine)
