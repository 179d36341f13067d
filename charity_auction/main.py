import asyncio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from loguru import logger
from charity_auction.core.config import settings
from charity_auction.core.config.redis import get_redis_client, close_redis_client
from charity_auction.core.database import DatabaseManager
from charity_auction.core.logging import configure_logging
from charity_auction.api.routes import (
    bids_router, auto_bids_router, auctions_router,
    websocket_router, ConnectionManager
)
from charity_auction.services.auction_service import AuctionService
from charity_auction.services.bidding import AuctionLocks, AutoBidRegistry, BidResolutionEngine
from charity_auction.services.notifications import (
    BidNotifier, NotificationRelay, RedisNotifier, WebSocketNotifier
)


def init_bidding(app: FastAPI, notifier: BidNotifier = None):
    """
    Wire the bidding services onto app.state.

    The notifier is handed to every service explicitly. Without one, events go
    straight to this process's sockets.
    """
    app.state.connection_manager = ConnectionManager()
    app.state.notifier = notifier or WebSocketNotifier(app.state.connection_manager)
    app.state.auction_locks = AuctionLocks()
    app.state.bid_engine = BidResolutionEngine(app.state.notifier, app.state.auction_locks)
    app.state.auto_bid_registry = AutoBidRegistry(app.state.bid_engine)
    app.state.auction_service = AuctionService(app.state.notifier, app.state.auction_locks)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"Starting up {settings.app_name} v{settings.version}...")

    await DatabaseManager.init()

    relay = None
    if settings.NOTIFICATION_RELAY_ENABLED:
        # Every worker publishes and every worker relays, so a socket sees
        # bids placed through any worker or by the sweep.
        redis = await get_redis_client()
        init_bidding(app, RedisNotifier(redis))
        relay = NotificationRelay(redis, app.state.connection_manager)
        relay.start()
    else:
        init_bidding(app)

    try:
        yield
    finally:
        logger.info("Shutting down...")
        if relay is not None:
            await relay.stop()
        await close_redis_client()
        await DatabaseManager.close()

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

app.include_router(
    bids_router,
    prefix="/bids",
    tags=["Bids"]
)

app.include_router(
    auto_bids_router,
    prefix="/autobid",
    tags=["Auto Bids"]
)

app.include_router(
    auctions_router,
    prefix="/auctions",
    tags=["Auctions"]
)

app.include_router(
    websocket_router,
    tags=["WebSocket"]
)

async def main():
    """ Main function to run FastAPI with multiple workers. """
    config = uvicorn.Config(
        "charity_auction.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.debug
    )
    server = uvicorn.Server(config)
    await server.serve()

if __name__ == "__main__":
    asyncio.run(main())
