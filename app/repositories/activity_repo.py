from typing import Any, Dict, Optional

from bson import ObjectId

from app.core.exceptions import StoreError
from app.core.logging import get_logger
from app.db.store import DocumentStore
from app.models.activity import Activity

logger = get_logger(__name__)


class ActivityRepository:
    """Append-only activity log."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.collection = "activities"

    async def log(self, action: str, metadata: Optional[Dict[str, Any]] = None) -> Optional[ObjectId]:
        """
        Record an activity.

        The mutation being logged has already completed, so a failed write
        here is reported as a warning and None is returned.
        """
        entry = Activity(action=action, metadata=metadata or {})
        try:
            return await self.store.insert(
                self.collection,
                entry.model_dump(by_alias=True, exclude={"updated_at"})
            )
        except StoreError as e:
            logger.warning(f"Could not record activity '{action}': {e}")
            return None
