from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, List
from enum import Enum

from app.models.base import MongoModel, PyObjectId


class AssigneeRole(str, Enum):
    OWNER = "Owner"
    EDITOR = "Editor"
    REVIEWER = "Reviewer"
    VIEWER = "Viewer"


# Embedded in folders.assignees; compared field by field by the store's set operators
class Assignee(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str
    role: AssigneeRole
    description: str = ""

    def to_document(self) -> dict:
        return self.model_dump(mode="json")


class Folder(MongoModel):
    name: str
    parent_id: Optional[PyObjectId] = None
    assignees: List[Assignee] = []
    upload_limit: Optional[int] = None
    file_count: int = 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class FolderCreate(BaseModel):
    """Folder creation schema. The name is checked by the creation name policy."""
    name: str
    parent_id: Optional[str] = None
    upload_limit: Optional[int] = Field(None, ge=0)


class FolderRename(BaseModel):
    """Folder rename schema. The name is checked by the rename name policy."""
    name: str


class AssigneeRequest(BaseModel):
    assignee: Assignee
    propagate_to_children: bool = False


class FolderResponse(BaseModel):
    """Folder response schema."""
    id: str
    name: str
    parent_id: Optional[str] = None
    assignees: List[Assignee] = []
    upload_limit: Optional[int] = None
    file_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_folder(cls, folder: Folder) -> "FolderResponse":
        return cls(
            id=str(folder.id),
            name=folder.name,
            parent_id=str(folder.parent_id) if folder.parent_id else None,
            assignees=folder.assignees,
            upload_limit=folder.upload_limit,
            file_count=folder.file_count,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )


class FolderDetails(FolderResponse):
    """Folder with its ancestors linked through `parent` up to the root."""
    parent: Optional["FolderDetails"] = None


class CascadeResult(BaseModel):
    folder_id: str
    deleted_files: int = 0
    deleted_folders: int = 0


FolderDetails.model_rebuild()
