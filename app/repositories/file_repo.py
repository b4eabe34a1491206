from bson import ObjectId
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from app.db.store import DocumentStore, as_object_id
from app.models.file import FileRecord
from app.utils.name_validation import FileRenamePolicy

FileId = Union[str, ObjectId]


class FileRepository:
    """File record database operations."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.collection = "files"

    async def create_file(self, folder_id: ObjectId, name: str, tags: Sequence[str] = ()) -> FileRecord:
        now = datetime.now(timezone.utc)
        file_dict = {
            "name": name,
            "folder_id": folder_id,
            "tags": list(tags),
            "created_at": now,
            "updated_at": now
        }
        file_dict["_id"] = await self.store.insert(self.collection, file_dict)
        return FileRecord(**file_dict)

    async def get_file(self, file_id: FileId) -> Optional[FileRecord]:
        doc = await self.store.get(self.collection, file_id)
        if doc:
            return FileRecord(**doc)
        return None

    async def list_files(self, folder_id: Union[str, ObjectId]) -> List[FileRecord]:
        """List the files a folder owns directly, sorted by name."""
        oid = as_object_id(folder_id)
        if oid is None:
            return []
        docs = await self.store.find(self.collection, {"folder_id": oid})
        files = [FileRecord(**doc) for doc in docs]
        files.sort(key=lambda f: f.name.lower())
        return files

    async def count_files(self, folder_id: Union[str, ObjectId]) -> int:
        oid = as_object_id(folder_id)
        if oid is None:
            return 0
        return await self.store.count(self.collection, {"folder_id": oid})

    async def rename_file(self, file_id: FileId, name: str) -> Optional[FileRecord]:
        """Rename a file. Only the character rule applies, there is no length cap."""
        FileRenamePolicy.validate(name)
        doc = await self.store.update(
            self.collection,
            file_id,
            set={"name": name, "updated_at": datetime.now(timezone.utc)}
        )
        if doc:
            return FileRecord(**doc)
        return None

    async def update_tags(self, file_id: FileId, tags: Sequence[str]) -> Optional[FileRecord]:
        doc = await self.store.update(
            self.collection,
            file_id,
            set={"tags": list(tags), "updated_at": datetime.now(timezone.utc)}
        )
        if doc:
            return FileRecord(**doc)
        return None

    async def delete_file(self, file_id: FileId) -> bool:
        """Delete a file record. Returns False if it was already gone."""
        return await self.store.delete(self.collection, file_id)
