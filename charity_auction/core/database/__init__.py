from .database import DatabaseManager, TORTOISE_MODELS
