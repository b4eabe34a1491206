from typing import List
from fastapi import APIRouter, Depends, Query

from app.db.session import get_store
from app.db.store import DocumentStore
from app.models.file import FileRename, FileResponse, FileTagsUpdate, FileUpload
from app.services.file_service import FileService

router = APIRouter()

@router.post("", response_model=FileResponse)
async def upload_file(
    file_in: FileUpload,
    store: DocumentStore = Depends(get_store)
):
    """Register an uploaded file in a folder"""
    file = await FileService(store).upload_file(file_in)
    return FileResponse.from_file(file)

@router.get("", response_model=List[FileResponse])
async def list_files(
    folder_id: str = Query(..., description="Folder whose files to list"),
    store: DocumentStore = Depends(get_store)
):
    """List the files of a folder"""
    files = await FileService(store).list_files(folder_id)
    return [FileResponse.from_file(file) for file in files]

@router.get("/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: str,
    store: DocumentStore = Depends(get_store)
):
    file = await FileService(store).get_file(file_id)
    return FileResponse.from_file(file)

@router.patch("/{file_id}", response_model=FileResponse)
async def rename_file(
    file_id: str,
    file_in: FileRename,
    store: DocumentStore = Depends(get_store)
):
    file = await FileService(store).rename_file(file_id, file_in.name)
    return FileResponse.from_file(file)

@router.put("/{file_id}/tags", response_model=FileResponse)
async def update_tags(
    file_id: str,
    tags_in: FileTagsUpdate,
    store: DocumentStore = Depends(get_store)
):
    """Replace the tags of a file"""
    file = await FileService(store).update_tags(file_id, tags_in.tags)
    return FileResponse.from_file(file)

@router.delete("/{file_id}")
async def delete_file(
    file_id: str,
    store: DocumentStore = Depends(get_store)
):
    deleted = await FileService(store).delete_file(file_id)
    return {"success": True, "deleted": deleted}
