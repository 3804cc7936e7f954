import asyncio
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import src.models
from src.analytics.router import router as analytics_router
from src.auth.router import router as auth_router
from src.broker import get_queue_broker
from src.cache import close_redis
from src.config import settings
from src.database import close_db
from src.feed.router import router as feed_router
from src.interactions.router import router as interactions_router
from src.moderation.router import router as moderation_router
from src.notifications.consumer import NotificationConsumer
from src.notifications.dependencies import get_connection_manager
from src.notifications.router import router as notifications_router
from src.notifications.router import websocket_router as notifications_websocket_router
from src.posts.router import router as posts_router
from src.subscriptions.router import router as subscriptions_router
from src.users.router import router as users_router
from src.utils.logging import configure_logging
from src.wallet.router import router as wallet_router

# Load environment variables from .env file
load_dotenv()

configure_logging(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")

    # Optional: auto run alembic migrations on startup
    if settings.AUTO_MIGRATE_ON_STARTUP:
        try:
            import subprocess
            subprocess.run(["alembic", "upgrade", "head"], check=True)
            logger.info("[Startup] Alembic migrations applied")
        except Exception as e:
            logger.error(f"[Startup] Alembic migration failed: {e}")

    broker = get_queue_broker()
    manager = get_connection_manager()
    consumer = None
    consumer_task = None
    if settings.NOTIFICATION_CONSUMER_ENABLED:
        consumer = NotificationConsumer(broker)
        # Retries in the background so the API serves while RabbitMQ is down
        consumer_task = asyncio.create_task(consumer.run())

    try:
        await manager.start()
    except Exception as e:
        # Sockets retry the listener on connect
        logger.error(f"[Startup] Notification listener failed to start: {e}")

    yield

    logger.info("Application shutting down...")
    if consumer_task is not None:
        consumer_task.cancel()
        try:
            await consumer_task
        except asyncio.CancelledError:
            pass
    if consumer is not None:
        await consumer.stop()
    await manager.close()
    await broker.close()
    await close_redis()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    swagger_ui_parameters={"docExpansion": "none"},
    lifespan=lifespan,
)

# Add CORS middleware
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin)
                       for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(subscriptions_router, prefix=settings.API_V1_STR)
app.include_router(posts_router, prefix=settings.API_V1_STR)
app.include_router(interactions_router, prefix=settings.API_V1_STR)
app.include_router(feed_router, prefix=settings.API_V1_STR)
app.include_router(wallet_router, prefix=settings.API_V1_STR)
app.include_router(notifications_router, prefix=settings.API_V1_STR)
app.include_router(notifications_websocket_router, prefix=settings.API_V1_STR)
app.include_router(moderation_router, prefix=settings.API_V1_STR)
app.include_router(analytics_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}!",
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
