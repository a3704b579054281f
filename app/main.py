# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the FoodTruck Hub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from app.config import settings
from app.websocket import websocket_manager, WEBSOCKET_CHANNEL
from app.exceptions import (
    FoodTruckHubException,
    foodtruckhub_exception_handler,
    supabase_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.middleware import RouteGatingMiddleware
from app.routers import admin, bookings, dashboard, health, listings, payments, profiles
from app.auth import routes as auth_routes
from app.websocket import routes as websocket_routes
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Global flag for Redis listener task
_redis_listener_task = None
_shutdown_event = None


async def redis_pubsub_listener():
    """
    Background task that listens to Redis pub/sub and broadcasts to WebSockets.

    Services and Celery workers publish {"user_id": ..., "type": ...} events;
    each one is forwarded to that user's open sockets.
    """
    import redis.asyncio as aioredis

    logger.info("Starting Redis pub/sub listener for WebSocket broadcasts")

    redis_client = None
    pubsub = None
    try:
        redis_client = aioredis.from_url(settings.REDIS_URL)
        pubsub = redis_client.pubsub()
        await pubsub.subscribe(WEBSOCKET_CHANNEL)

        async for message in pubsub.listen():
            if _shutdown_event and _shutdown_event.is_set():
                break

            if message["type"] == "message":
                try:
                    data = json.loads(message["data"])
                    user_id = data.pop("user_id", None)

                    if user_id:
                        await websocket_manager.broadcast(user_id, data)
                        logger.debug(f"Broadcast {data.get('type')} to user {user_id}")

                except json.JSONDecodeError as e:
                    logger.warning(f"Invalid JSON in Redis message: {e}")
                except Exception as e:
                    logger.error(f"Error processing Redis message: {e}")

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
    except Exception as e:
        logger.error(f"Redis pub/sub listener error: {e}")
    finally:
        try:
            if pubsub is not None:
                await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            if redis_client is not None:
                await redis_client.close()
        except Exception as e:
            logger.debug(f"Redis listener cleanup failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log config, start the Redis -> WebSocket bridge
    - Shutdown: stop the bridge
    """
    global _redis_listener_task, _shutdown_event

    logger.info(f"Starting FoodTruck Hub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    _shutdown_event = asyncio.Event()
    _redis_listener_task = asyncio.create_task(redis_pubsub_listener())

    yield

    logger.info("Shutting down FoodTruck Hub API")

    if _shutdown_event:
        _shutdown_event.set()
    if _redis_listener_task:
        _redis_listener_task.cancel()
        try:
            await _redis_listener_task
        except asyncio.CancelledError:
            pass


# Create FastAPI application
app = FastAPI(
    title="FoodTruck Hub API",
    description="""
## Marketplace for Venue Owners and Food Truck Vendors

Venue owners list outdoor space; vendors find it, book a time window and pay.

### How It Works

1. **Sign up** as a venue owner or vendor
2. **Complete your profile** and submit verification documents
3. **Owners list venues** with rates, amenities and photos
4. **Vendors search** by place name or coordinates and book a slot
5. **Owners confirm** the booking; the vendor pays (mock gateway)

### Test Cards

| Card | Result |
|------|--------|
| 4242 4242 4242 4242 | Succeeds |
| 4000 0000 0000 0002 | Declined |
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Sign-up, sign-in and session management"},
        {"name": "Profiles", "description": "Current user's account and role profile"},
        {"name": "Listings", "description": "Search and manage venue listings"},
        {"name": "Bookings", "description": "Book venues and manage the booking flow"},
        {"name": "Payments", "description": "Mock payments and payout accounts"},
        {"name": "Dashboard", "description": "Role dashboards"},
        {"name": "Admin", "description": "Verification review"},
        {"name": "WebSocket", "description": "Real-time user updates"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# Route gating runs inside CORS so preflight responses keep their headers
app.add_middleware(RouteGatingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(FoodTruckHubException, foodtruckhub_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(SupabaseClientError, supabase_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(profiles.router, prefix="/api/v1/profile", tags=["Profiles"])
app.include_router(listings.router, prefix="/api/v1/listings", tags=["Listings"])
app.include_router(bookings.router, prefix="/api/v1/bookings", tags=["Bookings"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
app.include_router(websocket_routes.router, tags=["WebSocket"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "FoodTruck Hub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
