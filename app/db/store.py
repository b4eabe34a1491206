"""
DocumentStore - thin async adapter over the MongoDB database.

Every call is bounded by a timeout and retried with exponential backoff on
transient driver failures. Anything the driver still raises surfaces as
StoreError.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.core.exceptions import StoreError
from app.core.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_ERRORS = (ConnectionFailure, asyncio.TimeoutError)

SortSpec = Sequence[Tuple[str, int]]


def as_object_id(value: Union[str, ObjectId, None]) -> Optional[ObjectId]:
    """Convert an id to ObjectId, returning None for missing or malformed ids."""
    if value is None or isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class DocumentStore:
    """Query and mutation interface over the `folders`, `files` and `activities` collections."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
    ):
        self.db = db
        self.timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
        self.max_retries = max(1, settings.STORE_MAX_RETRIES if max_retries is None else max_retries)
        self.backoff = settings.STORE_RETRY_BACKOFF_SECONDS if backoff is None else backoff

    async def _call(
        self,
        description: str,
        operation: Callable[[], Awaitable[Any]],
        retry: bool = True,
    ) -> Any:
        """
        Run a store operation with timeout and retry.

        Args:
            description: Human readable operation name for logs and errors
            operation: Zero-argument callable returning a fresh awaitable per attempt
            retry: False for operations that must not be applied twice; a
                transient failure then raises at once, since the first
                attempt may already have landed

        Raises:
            StoreError: If the operation fails permanently or retries are exhausted
        """
        attempts = self.max_retries if retry else 1
        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(operation(), timeout=self.timeout)
            except TRANSIENT_ERRORS as e:
                if attempt < attempts - 1:
                    delay = self.backoff * (2 ** attempt)
                    logger.warning(
                        f"Transient failure in {description}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{attempts}): {e!r}"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"{description} failed after {attempts} attempts: {e!r}")
                raise StoreError(f"{description} failed after {attempts} attempts", e) from e
            except PyMongoError as e:
                logger.error(f"{description} failed: {e!r}")
                raise StoreError(f"{description} failed: {e}", e) from e

    async def get(self, collection: str, object_id: Union[str, ObjectId]) -> Optional[Dict[str, Any]]:
        """Get a document by id. Malformed ids behave like missing documents."""
        oid = as_object_id(object_id)
        if oid is None:
            return None
        return await self._call(
            f"get {collection}/{oid}",
            lambda: self.db[collection].find_one({"_id": oid}),
        )

    async def find(
        self,
        collection: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Dict[str, Any]]:
        """Find documents matching an equality filter."""
        async def _find():
            cursor = self.db[collection].find(filter or {})
            if sort:
                cursor = cursor.sort(list(sort))
            return await cursor.to_list(None)

        return await self._call(f"find {collection} {filter or {}}", _find)

    async def count(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> int:
        return await self._call(
            f"count {collection} {filter or {}}",
            lambda: self.db[collection].count_documents(filter or {}),
        )

    async def insert(self, collection: str, document: Dict[str, Any]) -> ObjectId:
        """
        Insert a document and return its id.

        The id is assigned before the first attempt so that a retried insert
        whose earlier attempt already landed does not create a duplicate.
        """
        document.setdefault("_id", ObjectId())
        attempts = 0

        async def _insert():
            nonlocal attempts
            attempts += 1
            try:
                result = await self.db[collection].insert_one(document)
                return result.inserted_id
            except DuplicateKeyError:
                if attempts > 1:
                    return document["_id"]
                raise

        return await self._call(f"insert {collection}", _insert)

    async def update(
        self,
        collection: str,
        object_id: Union[str, ObjectId],
        set: Optional[Dict[str, Any]] = None,
        add_to_set: Optional[Dict[str, Any]] = None,
        pull: Optional[Dict[str, Any]] = None,
        inc: Optional[Dict[str, int]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply field updates and return the updated document, or None if absent.

        add_to_set and pull use the store's native set-union and set-remove
        operators, so concurrent callers never lose each other's elements.
        Updates carrying inc are not retried after a transient failure.
        """
        oid = as_object_id(object_id)
        if oid is None:
            return None

        update: Dict[str, Any] = {}
        if set:
            update["$set"] = set
        if add_to_set:
            update["$addToSet"] = add_to_set
        if pull:
            update["$pull"] = pull
        if inc:
            update["$inc"] = inc
        if not update:
            return await self.get(collection, oid)

        return await self._call(
            f"update {collection}/{oid}",
            lambda: self.db[collection].find_one_and_update(
                {"_id": oid},
                update,
                return_document=ReturnDocument.AFTER,
            ),
            retry=not inc,
        )

    async def delete(self, collection: str, object_id: Union[str, ObjectId]) -> bool:
        """Delete a document. Returns False if it was already absent."""
        oid = as_object_id(object_id)
        if oid is None:
            return False

        async def _delete():
            result = await self.db[collection].delete_one({"_id": oid})
            return result.deleted_count > 0

        return await self._call(f"delete {collection}/{oid}", _delete)

    async def watch(self, *collections: str) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield change notifications for the given collections.

        Requires a replica set or sharded cluster (MongoDB change streams).
        """
        pipeline = [{"$match": {"ns.coll": {"$in": list(collections)}}}]
        try:
            async with self.db.watch(pipeline) as stream:
                async for change in stream:
                    yield change
        except PyMongoError as e:
            logger.error(f"Change stream on {collections} failed: {e!r}")
            raise StoreError(f"watch {collections} failed: {e}", e) from e
