"""
StatsService - dashboard statistics computed by walking the folder forest.

Each query takes one snapshot of the `folders` collection and then issues one
file count per folder involved, so the cost grows with the number of folders
touched. This is fine for the moderate trees the dashboards show but does not
scale to large fan-out.
"""

import asyncio
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Union

from bson import ObjectId

from app.core.exceptions import NotFoundError
from app.db.store import DocumentStore
from app.models.file import FileRecord, FileResponse
from app.models.folder import Folder, FolderResponse
from app.models.stats import (
    AreaFolder,
    AreaSubfolder,
    FolderCounts,
    FolderUsage,
    ProgressReport,
    RootFolderFileCount,
)
from app.repositories.file_repo import FileRepository
from app.repositories.folder_repo import FolderRepository

# Placeholder ceiling used by the usage gauge, not a configured business rule
MAX_FILES_PER_FOLDER = 100


def usage_percentage(folder: Folder) -> float:
    """Share of the fixed 100-file ceiling used by a folder, clamped to 100."""
    total_files = folder.file_count or 0
    return min(total_files * 100 / MAX_FILES_PER_FOLDER, 100)


def format_progress(completed: int, total: int) -> str:
    if total == 0:
        return "0.00%"
    return f"{completed / total * 100:.2f}%"


def _children_by_parent(folders: Iterable[Folder]) -> Dict[ObjectId, List[Folder]]:
    children: Dict[ObjectId, List[Folder]] = defaultdict(list)
    for folder in folders:
        if folder.parent_id is not None:
            children[folder.parent_id].append(folder)
    return children


def _subtree_ids(root_id: ObjectId, children: Dict[ObjectId, List[Folder]]) -> List[ObjectId]:
    """Breadth-first ids of a folder and its descendants, cut at any cycle."""
    subtree = [root_id]
    seen = {root_id}
    index = 0
    while index < len(subtree):
        for child in children.get(subtree[index], []):
            if child.id not in seen:
                seen.add(child.id)
                subtree.append(child.id)
        index += 1
    return subtree


class StatsService:
    def __init__(self, store: DocumentStore):
        self.folders = FolderRepository(store)
        self.files = FileRepository(store)

    async def _file_counts(self, folder_ids: Iterable[ObjectId]) -> Dict[ObjectId, int]:
        folder_ids = list(folder_ids)
        counts = await asyncio.gather(*(self.files.count_files(fid) for fid in folder_ids))
        return dict(zip(folder_ids, counts))

    async def count_all_folders(self) -> int:
        return len(await self.folders.list_all())

    async def count_files_in_subtree(self, folder_id: Union[str, ObjectId]) -> int:
        """Files owned by a folder and all of its descendants."""
        all_folders = await self.folders.list_all()
        root = next((folder for folder in all_folders if str(folder.id) == str(folder_id)), None)
        if root is None:
            raise NotFoundError("folder", str(folder_id))

        counts = await self._file_counts(_subtree_ids(root.id, _children_by_parent(all_folders)))
        return sum(counts.values())

    async def count_files_in_root_folders(self) -> List[RootFolderFileCount]:
        """Total files under each root folder, roots in creation order."""
        all_folders = await self.folders.list_all()
        children = _children_by_parent(all_folders)
        counts = await self._file_counts(folder.id for folder in all_folders)
        return [
            RootFolderFileCount(
                folder_name=root.name,
                total_files=sum(counts.get(fid, 0) for fid in _subtree_ids(root.id, children))
            )
            for root in all_folders if root.is_root
        ]

    async def _subfolders_per_root(self, keep: Callable[[int], bool]) -> Dict[str, List[str]]:
        """
        Names of each root's direct children whose file count satisfies `keep`.

        Roots and children are in creation order; roots with no matching
        child are left out. Roots sharing a name share one entry.
        """
        all_folders = await self.folders.list_all()
        roots = [folder for folder in all_folders if folder.is_root]
        children = _children_by_parent(all_folders)

        subfolders = [child for root in roots for child in children.get(root.id, [])]
        counts = await self._file_counts(child.id for child in subfolders)

        result: Dict[str, List[str]] = {}
        for root in roots:
            names = [child.name for child in children.get(root.id, []) if keep(counts[child.id])]
            if names:
                result.setdefault(root.name, []).extend(names)
        return result

    async def per_root_folder_empty_subfolders(self) -> Dict[str, List[str]]:
        return await self._subfolders_per_root(lambda count: count == 0)

    async def per_root_folder_non_empty_subfolders(self) -> Dict[str, List[str]]:
        return await self._subfolders_per_root(lambda count: count > 0)

    async def folder_counts(self) -> FolderCounts:
        """Total folders, folders with no files (pending) and folders with files (completed)."""
        all_folders = await self.folders.list_all()
        counts = await self._file_counts(folder.id for folder in all_folders)
        completed = sum(1 for count in counts.values() if count > 0)
        return FolderCounts(
            total_folders=len(all_folders),
            pending_folders=len(all_folders) - completed,
            completed_folders=completed
        )

    async def count_pending_folders(self) -> int:
        return (await self.folder_counts()).pending_folders

    async def count_completed_folders(self) -> int:
        return (await self.folder_counts()).completed_folders

    async def overall_progress(self) -> ProgressReport:
        counts = await self.folder_counts()
        return ProgressReport(
            total_folders=counts.total_folders,
            completed_folders=counts.completed_folders,
            progress_percentage=format_progress(counts.completed_folders, counts.total_folders)
        )

    async def folder_usage(self, folder_id: str) -> FolderUsage:
        folder = await self.folders.get_folder(folder_id)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        return FolderUsage(
            folder_id=str(folder.id),
            file_count=folder.file_count,
            usage_percentage=usage_percentage(folder)
        )

    async def fetch_area_folders_and_files(self, area_name: str) -> List[AreaFolder]:
        """
        Folders named `area_name` with their files and direct subfolders.

        Files and subfolders are sorted by name; the matching folders are in
        creation order.
        """
        area_folders = await self.folders.find_by_name(area_name)
        return list(await asyncio.gather(*(self._area_folder(folder) for folder in area_folders)))

    async def _area_folder(self, folder: Folder) -> AreaFolder:
        files, subfolders = await asyncio.gather(
            self.files.list_files(folder.id),
            self.folders.list_children(folder.id)
        )
        subfolder_files = await asyncio.gather(*(self.files.list_files(sub.id) for sub in subfolders))

        area_subfolders = [
            AreaSubfolder(
                **FolderResponse.from_folder(sub).model_dump(),
                files=_file_responses(sub_files)
            )
            for sub, sub_files in zip(subfolders, subfolder_files)
        ]
        area_subfolders.sort(key=lambda sub: sub.name.lower())

        return AreaFolder(
            **FolderResponse.from_folder(folder).model_dump(),
            files=_file_responses(files),
            subfolders=area_subfolders
        )


def _file_responses(files: Iterable[FileRecord]) -> List[FileResponse]:
    return [FileResponse.from_file(file) for file in files]
