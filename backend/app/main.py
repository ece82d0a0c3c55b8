# Invoice Manager backend entrypoint.

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import backend.app.db.base  # noqa: F401  registers every model on Base.metadata
from backend.app.api import auth
from backend.app.api import customers
from backend.app.api import invoices
from backend.app.api import payments
from backend.app.api import recurring_invoices
from backend.app.core.dev_seed import ensure_default_user
from backend.app.core.errors import AppError
from backend.app.core.logging import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base_class import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.dependencies.integrations import Integrations

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name, version=settings.api_version)
app.state.integrations = Integrations.from_settings(settings)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    settings.public_base_url,
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(auth.router)
app.include_router(customers.router)
app.include_router(invoices.router)
app.include_router(recurring_invoices.router)
app.include_router(payments.router)


@app.get("/")
def read_root():
    return {"app": "Invoice Manager backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_user(db)
    finally:
        db.close()


@app.on_event("shutdown")
def close_integrations():
    app.state.integrations.close()
