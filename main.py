# src/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from auth.routes import router as auth_router
from profiles.routes import router as profile_router
from subscription.routes import router as subscription_router
from catalog.routes import router as catalog_router, admin_router as catalog_admin_router
from papers.routes import router as papers_router
from admin.routes import router as admin_router
from contact.routes import router as contact_router
from scheduler.tasks import start_scheduler, expire_packages, expire_trials
from database import init_db
from config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Examly Backend",
    description="API for exam paper generation, trials and subscriptions",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(subscription_router)
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(papers_router)
app.include_router(admin_router)
app.include_router(contact_router)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors(), exclude={"ctx", "input"})},
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

@app.on_event("startup")
async def startup_event():
    """Run initial tasks on startup."""
    init_db()
    if settings.SCHEDULER_ENABLED:
        expire_packages()
        expire_trials()
        app.state.scheduler = start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler:
        scheduler.shutdown(wait=False)

@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Examly Backend!"}
