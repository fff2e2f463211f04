from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.config import settings
from src.database import Base, SessionLocal, engine
from src.exceptions import register_exception_handlers
from src.logger_config import logger
from src.auth import router as auth_router
from src.auth.dependencies import require_admin, require_driver, require_traveller
from src.cities import router as cities_router
from src.journeys import router as journeys_router
from src.bookings import router as bookings_router
from src.drivers import router as drivers_router
from src.admin import router as admin_router
from src.admin.admin_service import AdminManagementService
from src.cities.service import CityService
from src.rate_limit.policy import (
    RateLimitPolicy, enforce_public_budget, enforce_role_budget, global_rate_limit_middleware
)

def init_db() -> None:
    """Create tables and seed reference data"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        added = CityService.seed_default_cities(db)
        if added:
            logger.info(f"Seeded {added} reference cities")
        if AdminManagementService(db).ensure_admin_account():
            logger.info(f"Admin account created: {settings.ADMIN_EMAIL}")
    finally:
        db.close()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    init_db()
    yield
    logger.info("Shutting down")

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Intercity bus journey booking API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.state.rate_limits = RateLimitPolicy.from_settings(settings)
register_exception_handlers(app)

# Global per-IP ceiling, ahead of authentication
app.middleware("http")(global_rate_limit_middleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public routes
app.include_router(
    auth_router.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"],
    dependencies=[Depends(enforce_public_budget)]
)

app.include_router(
    cities_router,
    prefix=f"{settings.API_PREFIX}/cities",
    tags=["Cities"],
    dependencies=[Depends(enforce_public_budget)]
)

app.include_router(
    journeys_router,
    prefix=f"{settings.API_PREFIX}/journeys",
    tags=["Journeys"],
    dependencies=[Depends(enforce_public_budget)]
)

# Role-scoped routes: role check first, then the role's per-user budget
app.include_router(
    bookings_router,
    prefix=f"{settings.API_PREFIX}/bookings",
    tags=["Bookings"],
    dependencies=[Depends(require_traveller), Depends(enforce_role_budget)]
)

app.include_router(
    drivers_router,
    prefix=f"{settings.API_PREFIX}/driver",
    tags=["Driver"],
    dependencies=[Depends(require_driver), Depends(enforce_role_budget)]
)

app.include_router(
    admin_router.router,
    prefix=f"{settings.API_PREFIX}/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin), Depends(enforce_role_budget)]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": settings.PROJECT_NAME,
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
