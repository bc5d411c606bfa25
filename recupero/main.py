# recupero/main.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from recupero.core.config import settings
from recupero.core.errors import register_exception_handlers
from recupero.core.logging import configure_logging
from recupero.api.v1.endpoints import (
    activities, budget_imports, budgets, health, recovery_types, reports, school_years, teachers,
)
from recupero.db.session import check_db_connection

API_V1_PREFIX = "/api/v1"

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description="API per il tracking dei moduli di recupero dei docenti",
    version="1.0.0",
)

# CORS (in produzione: limitare le origini con CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Router versionati
app.include_router(health.router,         prefix=API_V1_PREFIX)
app.include_router(teachers.router,       prefix=API_V1_PREFIX)
app.include_router(budget_imports.router, prefix=API_V1_PREFIX)
app.include_router(budgets.router,        prefix=API_V1_PREFIX)
app.include_router(school_years.router,   prefix=API_V1_PREFIX)
app.include_router(recovery_types.router, prefix=API_V1_PREFIX)
app.include_router(activities.router,     prefix=API_V1_PREFIX)
app.include_router(reports.router,        prefix=API_V1_PREFIX)


# Rotte di base fuori da /api/v1
@app.get("/health")
def health_root():
    return {"status": "ok", "message": "API funzionante"}


@app.get("/api/v1/health/db")
def health_db():
    if not check_db_connection():
        raise HTTPException(status_code=503, detail="Database non raggiungibile")
    return {"db": "ok"}


@app.get("/")
def root():
    return {
        "message": "API recupero moduli",
        "version": "1.0.0",
        "docs": "/docs",
        "api_v1": API_V1_PREFIX,
    }
