"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import ledger, portfolio, transactions
from config import ConfigurationError, settings
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Folio Ledger",
    description="Portfolio valuation snapshots and transaction-driven asset log",
    version="0.1.0",
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Missing settings raised while building dependencies."""
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Include API routers
app.include_router(portfolio.router)
app.include_router(ledger.router)
app.include_router(transactions.router)


@app.get("/api/config")
def get_config():
    """Public configuration the frontend needs."""
    return {"base_currency": settings.BASE_CURRENCY}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
