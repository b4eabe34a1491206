"""
CascadeService - removes whole subtrees and fans assignee changes out to children.

Deletion order per folder:
1. Delete every file the folder owns (concurrently)
2. Recurse into every child folder (concurrently)
3. Delete the folder itself and record the activity

Nothing is rolled back. A failed branch keeps its folder record so the
deletion can simply be invoked again.
"""

import asyncio
from typing import Any, List, Optional, Sequence, Union

from bson import ObjectId

from app.core.exceptions import NotFoundError, PartialCascadeFailure
from app.core.logging import get_logger
from app.db.store import DocumentStore
from app.models.folder import Assignee, CascadeResult, Folder
from app.repositories.activity_repo import ActivityRepository
from app.repositories.file_repo import FileRepository
from app.repositories.folder_repo import FolderRepository

logger = get_logger(__name__)


def _first_error(results: Sequence[Any]) -> Optional[BaseException]:
    for result in results:
        if isinstance(result, BaseException):
            return result
    return None


class CascadeService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.folders = FolderRepository(store)
        self.files = FileRepository(store)
        self.activity = ActivityRepository(store)

    async def delete_folder_recursive(
        self,
        folder_id: Union[str, ObjectId],
        missing_ok: bool = True
    ) -> CascadeResult:
        """
        Delete a folder, its files, and every descendant folder.

        An absent folder is a no-op when missing_ok is set, so repeating a
        deletion (or retrying a partial one) is safe. With missing_ok=False
        an absent folder raises NotFoundError.

        Raises PartialCascadeFailure naming the branch that failed.
        """
        folder = await self.folders.get_folder(folder_id)
        if folder is None:
            if missing_ok:
                logger.info(f"Folder {folder_id} already absent, nothing to delete")
                return CascadeResult(folder_id=str(folder_id))
            raise NotFoundError("folder", str(folder_id))

        progress = CascadeResult(folder_id=str(folder.id))
        try:
            await self._delete_subtree(folder, progress)
        except PartialCascadeFailure as failure:
            failure.deleted_files = progress.deleted_files
            failure.deleted_folders = progress.deleted_folders
            logger.error(
                f"Cascade deletion of {folder.id} stopped at {failure.failed_folder_id} "
                f"after {progress.deleted_folders} folders and {progress.deleted_files} files: {failure.cause!r}"
            )
            raise

        logger.info(
            f"Deleted folder {folder.id} ({folder.name}) with "
            f"{progress.deleted_folders} folders and {progress.deleted_files} files"
        )
        return progress

    async def _delete_subtree(self, folder: Folder, progress: CascadeResult) -> None:
        try:
            files = await self.files.list_files(folder.id)
            results = await asyncio.gather(
                *(self.files.delete_file(file.id) for file in files),
                return_exceptions=True
            )
            deleted_files = sum(1 for result in results if result is True)
            progress.deleted_files += deleted_files
            # Keep the count right if this folder outlives a failed branch
            if deleted_files:
                await self.folders.adjust_file_count(folder.id, -deleted_files)
            error = _first_error(results)
            if error is not None:
                raise error

            children = await self.folders.list_children(folder.id)
        except Exception as e:
            raise self._branch_failure(folder, progress, e) from e

        results = await asyncio.gather(
            *(self._delete_subtree(child, progress) for child in children),
            return_exceptions=True
        )
        error = _first_error(results)
        if error is not None:
            if isinstance(error, PartialCascadeFailure) or not isinstance(error, Exception):
                raise error
            raise self._branch_failure(folder, progress, error) from error

        try:
            deleted = await self.folders.delete_folder(folder.id)
        except Exception as e:
            raise self._branch_failure(folder, progress, e) from e

        if deleted:
            progress.deleted_folders += 1
            await self.activity.log(
                "Delete folder",
                {"folder_id": str(folder.id), "folder_name": folder.name}
            )

    @staticmethod
    def _branch_failure(folder: Folder, progress: CascadeResult, cause: BaseException) -> PartialCascadeFailure:
        return PartialCascadeFailure(
            root_folder_id=progress.folder_id,
            failed_folder_id=str(folder.id),
            failed_folder_name=folder.name,
            cause=cause,
            deleted_files=progress.deleted_files,
            deleted_folders=progress.deleted_folders
        )

    async def propagate_assignee(self, folder_id: Union[str, ObjectId], assignee: Assignee) -> int:
        """
        Union an assignee into every direct child of a folder.

        Only one level deep. Returns the number of children updated.
        """
        children: List[Folder] = await self.folders.list_children(folder_id)
        updated = await asyncio.gather(
            *(self.folders.add_assignee(child.id, assignee) for child in children)
        )
        return sum(1 for folder in updated if folder is not None)
