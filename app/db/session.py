from app.db.mongo import mongodb
from app.db.store import DocumentStore


async def get_store() -> DocumentStore:
    """Return a document store bound to the active database connection."""
    return DocumentStore(mongodb.db)
