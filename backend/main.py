import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import settings
from core.exceptions import ParcelError, parcel_error_handler, request_validation_handler
from core.limiter import limiter
from database import connect_db, close_db

# Routers
from routers import auth, parcels, tracking, users

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_db()
    logger.info("Parcel delivery API started")
    yield
    # Shutdown
    await close_db()
    logger.info("Parcel delivery API stopped")


app = FastAPI(
    title="Parcel Delivery API",
    description="Parcel creation, status lifecycle and public tracking",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Erreurs du cycle de vie -> JSON structuré
app.add_exception_handler(ParcelError, parcel_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=not settings.DEBUG,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers — publics (sans auth)
app.include_router(tracking.router, prefix="/api/tracking", tags=["Tracking"])

# Routers — avec auth
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(parcels.router, prefix="/api/parcels", tags=["Parcels"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "app": "parcel-delivery", "version": "1.0.0"}
