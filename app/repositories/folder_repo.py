from bson import ObjectId
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from app.core.exceptions import NotFoundError
from app.db.store import DocumentStore, as_object_id
from app.models.folder import Assignee, Folder, FolderCreate, FolderDetails, FolderResponse
from app.utils.name_validation import CreationNamePolicy, RenameNamePolicy

FolderId = Union[str, ObjectId]

# Creation order; _id breaks ties between folders created in the same millisecond
CREATION_ORDER = [("created_at", 1), ("_id", 1)]


class FolderRepository:
    """Folder database operations."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.collection = "folders"

    async def create_folder(self, folder_data: FolderCreate) -> Folder:
        """
        Create a folder after validating its name.

        Raises ValidationError before anything is written, and NotFoundError
        when the given parent does not exist.
        """
        CreationNamePolicy.validate(folder_data.name)

        parent_id = None
        if folder_data.parent_id is not None:
            parent = await self.get_folder(folder_data.parent_id)
            if parent is None:
                raise NotFoundError("folder", folder_data.parent_id)
            parent_id = parent.id

        now = datetime.now(timezone.utc)
        folder_dict = {
            "name": folder_data.name,
            "parent_id": parent_id,
            "assignees": [],
            "upload_limit": folder_data.upload_limit,
            "file_count": 0,
            "created_at": now,
            "updated_at": now
        }

        folder_dict["_id"] = await self.store.insert(self.collection, folder_dict)
        return Folder(**folder_dict)

    async def get_folder(self, folder_id: FolderId) -> Optional[Folder]:
        """Get a folder by id."""
        doc = await self.store.get(self.collection, folder_id)
        if doc:
            return Folder(**doc)
        return None

    async def get_folder_details(
        self,
        folder_id: FolderId,
        cache: Optional[Dict[ObjectId, Folder]] = None
    ) -> FolderDetails:
        """
        Get a folder with its ancestors linked through `parent`.

        Ancestors are fetched one at a time, walking upward, and each fetched
        folder is kept in `cache`. Passing the same cache to later calls
        avoids refetching shared ancestors. A dangling parent reference ends
        the chain; a cyclic one is cut at the first repeat.
        """
        cache = {} if cache is None else cache
        chain: List[Folder] = []
        seen = set()

        current_id = as_object_id(folder_id)
        while current_id is not None and current_id not in seen:
            seen.add(current_id)
            folder = cache.get(current_id)
            if folder is None:
                folder = await self.get_folder(current_id)
                if folder is None:
                    break
                cache[current_id] = folder
            chain.append(folder)
            current_id = folder.parent_id

        if not chain:
            raise NotFoundError("folder", str(folder_id))

        details = None
        for folder in reversed(chain):
            details = FolderDetails(
                **FolderResponse.from_folder(folder).model_dump(),
                parent=details
            )
        return details

    async def list_children(self, parent_id: Optional[FolderId]) -> List[Folder]:
        """List direct children of a folder, or root folders when parent_id is None."""
        oid = as_object_id(parent_id)
        if parent_id is not None and oid is None:
            return []
        docs = await self.store.find(
            self.collection,
            {"parent_id": oid},
            sort=CREATION_ORDER
        )
        return [Folder(**doc) for doc in docs]

    async def list_all(self) -> List[Folder]:
        """List every folder in creation order."""
        docs = await self.store.find(self.collection, sort=CREATION_ORDER)
        return [Folder(**doc) for doc in docs]

    async def find_by_name(self, name: str) -> List[Folder]:
        docs = await self.store.find(self.collection, {"name": name}, sort=CREATION_ORDER)
        return [Folder(**doc) for doc in docs]

    async def rename_folder(self, folder_id: FolderId, name: str) -> Optional[Folder]:
        """Rename a folder after validating the new name against the rename policy."""
        RenameNamePolicy.validate(name)
        doc = await self.store.update(
            self.collection,
            folder_id,
            set={"name": name, "updated_at": datetime.now(timezone.utc)}
        )
        if doc:
            return Folder(**doc)
        return None

    async def add_assignee(self, folder_id: FolderId, assignee: Assignee) -> Optional[Folder]:
        """Union an assignee into the folder's assignee set."""
        doc = await self.store.update(
            self.collection,
            folder_id,
            add_to_set={"assignees": assignee.to_document()}
        )
        if doc:
            return Folder(**doc)
        return None

    async def remove_assignee(self, folder_id: FolderId, assignee: Assignee) -> Optional[Folder]:
        """Remove an exactly matching assignee; absent assignees are left alone."""
        doc = await self.store.update(
            self.collection,
            folder_id,
            pull={"assignees": assignee.to_document()}
        )
        if doc:
            return Folder(**doc)
        return None

    async def adjust_file_count(self, folder_id: FolderId, delta: int) -> Optional[Folder]:
        doc = await self.store.update(self.collection, folder_id, inc={"file_count": delta})
        if doc:
            return Folder(**doc)
        return None

    async def delete_folder(self, folder_id: FolderId) -> bool:
        """Delete a single folder record. Returns False if it was already gone."""
        return await self.store.delete(self.collection, folder_id)
