from typing import Dict, List, Optional, Tuple

from bson import ObjectId

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.db.store import DocumentStore
from app.models.file import FileRecord
from app.models.folder import Assignee, Folder, FolderCreate, FolderDetails
from app.repositories.activity_repo import ActivityRepository
from app.repositories.file_repo import FileRepository
from app.repositories.folder_repo import FolderRepository
from app.services.cascade_service import CascadeService
from app.utils.sorting import natural_sort_key

logger = get_logger(__name__)


class FolderService:
    def __init__(self, store: DocumentStore):
        self.folders = FolderRepository(store)
        self.files = FileRepository(store)
        self.activity = ActivityRepository(store)
        self.cascade = CascadeService(store)

    async def create_folder(self, folder_in: FolderCreate) -> Folder:
        folder = await self.folders.create_folder(folder_in)
        logger.info(f"Created folder {folder.id} ({folder.name}) under {folder.parent_id}")
        await self.activity.log(
            "Create folder",
            {"folder_id": str(folder.id), "folder_name": folder.name}
        )
        return folder

    async def get_folder(self, folder_id: str, cache: Optional[Dict[ObjectId, Folder]] = None) -> FolderDetails:
        """Folder with its full parent chain."""
        return await self.folders.get_folder_details(folder_id, cache)

    async def get_folder_with_upload_limit(self, folder_id: str) -> Folder:
        folder = await self.folders.get_folder(folder_id)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        return folder

    async def list_folders(self, parent_id: Optional[str] = None) -> List[Folder]:
        """Direct children of parent_id (root folders when None), in natural name order."""
        folders = await self.folders.list_children(parent_id)
        folders.sort(key=lambda f: natural_sort_key(f.name))
        return folders

    async def list_folders_for_user(
        self,
        user_id: str,
        parent_id: Optional[str] = None
    ) -> Tuple[List[Folder], List[FileRecord]]:
        """
        Folders visible to an assignee at one level of the tree.

        Parents of assigned subfolders are included so the user can navigate
        down to them. Files are returned only when a parent_id is given.
        """
        all_folders = await self.folders.list_all()

        user_folders = [
            folder for folder in all_folders
            if any(assignee.user_id == user_id for assignee in folder.assignees)
        ]
        assigned_ids = {folder.id for folder in user_folders}
        parent_ids = {
            folder.parent_id for folder in user_folders
            if folder.parent_id and folder.parent_id not in assigned_ids
        }
        user_folders += [folder for folder in all_folders if folder.id in parent_ids]

        if parent_id is None:
            user_folders = [folder for folder in user_folders if folder.parent_id is None]
        else:
            user_folders = [folder for folder in user_folders if str(folder.parent_id) == parent_id]

        files: List[FileRecord] = []
        if parent_id:
            files = await self.files.list_files(parent_id)

        return user_folders, files

    async def rename_folder(self, folder_id: str, name: str) -> Folder:
        folder = await self.folders.rename_folder(folder_id, name)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        logger.info(f"Renamed folder {folder_id} to {name}")
        await self.activity.log("Rename folder", {"folder_id": folder_id, "folder_name": name})
        return folder

    async def add_assignee(
        self,
        folder_id: str,
        assignee: Assignee,
        propagate_to_children: bool = False
    ) -> Folder:
        folder = await self.folders.add_assignee(folder_id, assignee)
        if folder is None:
            raise NotFoundError("folder", folder_id)

        if propagate_to_children:
            updated = await self.cascade.propagate_assignee(folder.id, assignee)
            logger.info(f"Assigned {assignee.user_id} to folder {folder_id} and {updated} subfolders")
        else:
            logger.info(f"Assigned {assignee.user_id} to folder {folder_id}")
        return folder

    async def remove_assignee(self, folder_id: str, assignee: Assignee) -> Folder:
        folder = await self.folders.remove_assignee(folder_id, assignee)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        logger.info(f"Removed {assignee.user_id} from folder {folder_id}")
        return folder

    async def delete_folder(self, folder_id: str, missing_ok: bool = True):
        return await self.cascade.delete_folder_recursive(folder_id, missing_ok=missing_ok)
