from pydantic import BaseModel
from typing import List

from app.models.file import FileResponse
from app.models.folder import FolderResponse


class ProgressReport(BaseModel):
    total_folders: int
    completed_folders: int
    progress_percentage: str  # e.g. "66.67%"


class RootFolderFileCount(BaseModel):
    folder_name: str
    total_files: int


class FolderCounts(BaseModel):
    total_folders: int
    pending_folders: int
    completed_folders: int


class SubtreeFileCount(BaseModel):
    folder_id: str
    total_files: int


class FolderUsage(BaseModel):
    folder_id: str
    file_count: int
    usage_percentage: float


class AreaSubfolder(FolderResponse):
    files: List[FileResponse] = []


class AreaFolder(FolderResponse):
    files: List[FileResponse] = []
    subfolders: List[AreaSubfolder] = []


class FolderListing(BaseModel):
    folders: List[FolderResponse] = []
    files: List[FileResponse] = []
