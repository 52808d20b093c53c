import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.app_shell.config import validate_ops_rules
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        applied = SQLiteMigrator(settings.db_path).run_migrations()
        logger.info("Rules loaded from %s; %d migrations applied", settings.rules_path, len(applied))
    except (RuntimeError, ValueError, OSError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="Lead Marketplace API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import admin, leads, subscriptions  # noqa: E402

app.include_router(leads.router, prefix="/api/leads", tags=["Leads"])
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["Subscriptions"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "lead-marketplace"}
