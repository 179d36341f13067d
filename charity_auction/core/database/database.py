from tortoise import Tortoise
from loguru import logger
from charity_auction.core.config import settings

TORTOISE_MODELS = ["charity_auction.models"]


class DatabaseManager:
    @staticmethod
    async def init(generate_schemas: bool = True):
        """Initialize database connections and, optionally, the schema"""
        await Tortoise.init(
            db_url=settings.database_url,
            modules={"models": TORTOISE_MODELS}
        )
        if generate_schemas:
            await Tortoise.generate_schemas(safe=True)
            logger.info("✅ Database schema initialized")

    @staticmethod
    async def close():
        """Close database connections"""
        await Tortoise.close_connections()
        logger.info("🛑 Database connections closed")
