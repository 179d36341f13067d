import asyncio
from loguru import logger

from charity_auction.core.config import settings
from charity_auction.core.config.celery import celery_app
from charity_auction.core.config.redis import get_redis_client, close_redis_client
from charity_auction.core.database import DatabaseManager
from charity_auction.services.auction_service import AuctionService
from charity_auction.services.bidding import AutoBidSweeper
from charity_auction.services.notifications import RedisNotifier


async def run_sweep() -> dict:
    await DatabaseManager.init(generate_schemas=False)
    try:
        sweeper = AutoBidSweeper(RedisNotifier(await get_redis_client()))
        report = await sweeper.sweep_tick()
        return {
            "bids_placed": report.bids_placed,
            "deactivated": report.deactivated,
            "conflicts": report.conflicts,
            "failed_auctions": [str(auction_id) for auction_id in report.failed_auctions],
        }
    finally:
        await close_redis_client()
        await DatabaseManager.close()


async def run_close_expired() -> int:
    await DatabaseManager.init(generate_schemas=False)
    try:
        service = AuctionService(RedisNotifier(await get_redis_client()))
        return await service.close_expired_auctions()
    finally:
        await close_redis_client()
        await DatabaseManager.close()


@celery_app.task(name="auto_bids.sweep", ignore_result=True)
def sweep_auto_bids():
    """Scheduled backstop that advances every active auto-bid by one step"""
    if not settings.AUTOBID_SWEEP_ENABLED:
        logger.debug("[AutoBid sweep] disabled, skipping tick")
        return None
    try:
        return asyncio.run(run_sweep())
    except Exception as e:
        # A failed tick must never take the worker down, the next one retries
        logger.error(f"[AutoBid sweep] tick failed: {e}")
        return None


@celery_app.task(name="auctions.close_expired", ignore_result=True)
def close_expired_auctions():
    try:
        closed = asyncio.run(run_close_expired())
    except Exception as e:
        logger.error(f"Closing expired auctions failed: {e}")
        return 0
    if closed:
        logger.info(f"Closed {closed} expired auction(s)")
    return closed
