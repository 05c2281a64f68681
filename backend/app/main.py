# GritSync portal backend entrypoint.

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import document_requirements
from backend.app.api import notifications
from backend.app.api import payment_intents
from backend.app.api import payments
from backend.app.api import quotations
from backend.app.api import services
from backend.app.api import webhooks
from backend.app.core.constants import CORS_MAX_AGE_SECONDS
from backend.app.core.dev_seed import ensure_default_catalog
from backend.app.core.errors import AppError, error_body
from backend.app.core.logging_config import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=CORS_MAX_AGE_SECONDS,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"[APP] {request.method} {request.url.path} failed: {exc.error_type} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


app.include_router(payment_intents.router)
app.include_router(payments.router)
app.include_router(quotations.router)
app.include_router(services.router)
app.include_router(document_requirements.router)
app.include_router(notifications.router)
app.include_router(webhooks.router)


@app.get("/")
def read_root():
    return {"app": "GritSync portal backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok", "environment": settings.environment}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_catalog(db)
    finally:
        db.close()
