from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional

from app.models.base import MongoModel, PyObjectId


class FileRecord(MongoModel):
    name: str
    folder_id: PyObjectId
    tags: List[str] = []


class FileUpload(BaseModel):
    """File upload schema. Blob transfer happens elsewhere; only the record is stored."""
    folder_id: str
    name: str = Field(..., min_length=1)
    tags: List[str] = []


class FileRename(BaseModel):
    name: str


class FileTagsUpdate(BaseModel):
    tags: List[str]


class FileResponse(BaseModel):
    """File response schema."""
    id: str
    name: str
    folder_id: str
    tags: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_file(cls, file: FileRecord) -> "FileResponse":
        return cls(
            id=str(file.id),
            name=file.name,
            folder_id=str(file.folder_id),
            tags=file.tags,
            created_at=file.created_at,
            updated_at=file.updated_at,
        )
