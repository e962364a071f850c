from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from database import engine, Base, SessionLocal, verify_db_connection
from routers import auth, orders, drivers, vehicles, payments, tracking, kyc, dashboard, logs
from middleware.security import SecurityMiddleware
from models.user import User, UserRole, KycStatus
from services.auth_service import AuthService
from utils.errors import AppError
from utils.logger import DatabaseLogger
from config import settings
import os
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fleet Operator Admin API",
    description="Backend API for the logistics operator admin dashboard",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Domain errors carry a message that is safe to show to the operator"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        DatabaseLogger.log_error(
            error_type=type(exc).__name__,
            error_message=exc.message,
            endpoint=request.url.path
        )
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    DatabaseLogger.log_exception(exc, endpoint=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal error occurred. Please try again later."}
    )

app.add_middleware(SecurityMiddleware)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["*"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)

os.makedirs(os.path.join(settings.upload_dir, "kyc-documents"), exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")

app.include_router(auth.router)
app.include_router(orders.router)
app.include_router(drivers.router)
app.include_router(vehicles.router)
app.include_router(payments.router)
app.include_router(tracking.router)
app.include_router(kyc.router)
app.include_router(dashboard.router)
app.include_router(logs.router)

DEFAULT_ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@fleet.local")
DEFAULT_ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@123")

def seed_admin(db):
    """Create the first administrator account if none exists"""
    existing_admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
    if existing_admin:
        logger.info("Admin user already exists")
        return existing_admin

    admin = AuthService.register(
        db=db,
        full_name="Admin",
        email=DEFAULT_ADMIN_EMAIL,
        password=DEFAULT_ADMIN_PASSWORD,
        role=UserRole.ADMIN
    )
    # Administrators review KYC, they never submit it
    admin.kyc_status = KycStatus.COMPLETED.value
    db.commit()
    logger.info(f"Admin user created: {admin.id}")
    return admin

@app.on_event("startup")
async def startup_event():
    """Initialize database and create admin user on startup"""
    if engine is None:
        logger.error("DATABASE_URL not configured - database features disabled")
        return

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

        db = SessionLocal()
        try:
            seed_admin(db)
        except AppError as e:
            logger.error(f"Admin init error: {e.message}")
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Startup error: {e}")

@app.get("/")
def root():
    return {
        "message": "Fleet Operator Admin API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
def health_check():
    db_status = "connected" if verify_db_connection() else "not connected"
    return {
        "status": "healthy",
        "database": db_status
    }
