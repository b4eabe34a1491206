from typing import List, Sequence

from app.core.exceptions import LimitExceededError, NotFoundError
from app.core.logging import get_logger
from app.db.store import DocumentStore
from app.models.file import FileRecord, FileUpload
from app.repositories.activity_repo import ActivityRepository
from app.repositories.file_repo import FileRepository
from app.repositories.folder_repo import FolderRepository

logger = get_logger(__name__)


class FileService:
    def __init__(self, store: DocumentStore):
        self.folders = FolderRepository(store)
        self.files = FileRepository(store)
        self.activity = ActivityRepository(store)

    async def upload_file(self, file_in: FileUpload) -> FileRecord:
        """
        Create a file record in a folder that still has room.

        The limit check and the insert are separate store calls, so
        concurrent uploads into the same folder can overrun the limit.
        """
        folder = await self.folders.get_folder(file_in.folder_id)
        if folder is None:
            raise NotFoundError("folder", file_in.folder_id)

        if folder.upload_limit is not None and folder.file_count >= folder.upload_limit:
            logger.info(f"Upload to folder {folder.id} rejected: limit {folder.upload_limit} reached")
            raise LimitExceededError(str(folder.id), folder.upload_limit)

        file = await self.files.create_file(folder.id, file_in.name, file_in.tags)
        await self.folders.adjust_file_count(folder.id, 1)
        logger.info(f"Uploaded file {file.id} ({file.name}) to folder {folder.id}")
        await self.activity.log(
            "Upload file",
            {"file_id": str(file.id), "file_name": file.name, "folder_id": str(folder.id)}
        )
        return file

    async def get_file(self, file_id: str) -> FileRecord:
        file = await self.files.get_file(file_id)
        if file is None:
            raise NotFoundError("file", file_id)
        return file

    async def list_files(self, folder_id: str) -> List[FileRecord]:
        return await self.files.list_files(folder_id)

    async def rename_file(self, file_id: str, name: str) -> FileRecord:
        file = await self.files.rename_file(file_id, name)
        if file is None:
            raise NotFoundError("file", file_id)
        await self.activity.log("Rename file", {"file_id": file_id, "file_name": name})
        return file

    async def update_tags(self, file_id: str, tags: Sequence[str]) -> FileRecord:
        file = await self.files.update_tags(file_id, tags)
        if file is None:
            raise NotFoundError("file", file_id)
        await self.activity.log("Update file tags", {"file_id": file_id, "tags": list(tags)})
        return file

    async def delete_file(self, file_id: str) -> bool:
        """Delete a file and release its slot in the folder. Absent files are a no-op."""
        file = await self.files.get_file(file_id)
        if file is None:
            return False

        deleted = await self.files.delete_file(file.id)
        if deleted:
            await self.folders.adjust_file_count(file.folder_id, -1)
            logger.info(f"Deleted file {file.id} ({file.name})")
            await self.activity.log(
                "Delete file",
                {"file_id": str(file.id), "file_name": file.name, "folder_id": str(file.folder_id)}
            )
        return deleted
