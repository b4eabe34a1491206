from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI)
    mongodb.db = mongodb.client[settings.MONGODB_DB]
    
    # Create indexes
    await create_indexes(mongodb.db)
    logger.info(f"Connected to MongoDB: {settings.MONGODB_DB}")

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Folder tree lookups
    await db["folders"].create_index("parent_id")
    await db["folders"].create_index("name")
    await db["folders"].create_index([("created_at", 1), ("_id", 1)])
    await db["folders"].create_index("assignees.user_id")
    
    # Files per folder
    await db["files"].create_index("folder_id")
    
    # Activity log
    await db["activities"].create_index([("created_at", -1)])