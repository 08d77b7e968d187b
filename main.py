import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

load_dotenv()

from app import config
from app.database import engine, Base, SessionLocal
from app.services.taxonomy import seed_case_types
from app.auth.routes import router as auth_router
from app.lawyers.routes import router as lawyers_router
from app.clients.routes import router as clients_router
from app.secretaries.routes import router as secretaries_router
from app.opponents.routes import router as opponents_router
from app.links.routes import client_links_router, opponent_links_router
from app.cases.routes import router as cases_router
from app.sessions.routes import router as sessions_router
from app.appointments.routes import router as appointments_router
from app.consultations.routes import router as consultations_router
from app.payments.routes import router as payments_router
from app.transactions.routes import router as transactions_router
from app.case_types.routes import router as case_types_router
from app.admin.routes import router as admin_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

db = SessionLocal()
try:
    seed_case_types(db)
finally:
    db.close()

app = FastAPI(
    title="Law Firm Back Office API",
    description="Case, client, scheduling and billing management for law firms",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin-allow-popups"
        response.headers["Cross-Origin-Embedder-Policy"] = "unsafe-none"
        return response

app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(location) or "request"
        messages.append(f"{field}: {error.get('msg')}")
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Static files
os.makedirs(config.MEDIA_ROOT, exist_ok=True)
os.makedirs(config.PUBLIC_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.MEDIA_ROOT), name="uploads")
app.mount("/public", StaticFiles(directory=config.PUBLIC_DIR), name="public")

# Include routers
app.include_router(auth_router)
app.include_router(lawyers_router)
app.include_router(clients_router)
app.include_router(secretaries_router)
app.include_router(opponents_router)
app.include_router(client_links_router)
app.include_router(opponent_links_router)
app.include_router(cases_router)
app.include_router(sessions_router)
app.include_router(appointments_router)
app.include_router(consultations_router)
app.include_router(payments_router)
app.include_router(transactions_router)
app.include_router(case_types_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "message": "Law Firm Back Office API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}
