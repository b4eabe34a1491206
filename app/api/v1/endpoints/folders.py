from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.db.session import get_store
from app.db.store import DocumentStore
from app.models.file import FileResponse
from app.models.folder import (
    AssigneeRequest,
    Assignee,
    CascadeResult,
    FolderCreate,
    FolderDetails,
    FolderRename,
    FolderResponse,
)
from app.models.stats import FolderListing
from app.services.folder_service import FolderService

router = APIRouter()

@router.post("", response_model=FolderResponse)
async def create_folder(
    folder_in: FolderCreate,
    store: DocumentStore = Depends(get_store)
):
    """Create a new folder"""
    folder = await FolderService(store).create_folder(folder_in)
    return FolderResponse.from_folder(folder)

@router.get("", response_model=List[FolderResponse])
async def list_folders(
    parent_id: Optional[str] = Query(None, description="List children of this folder instead of root folders"),
    store: DocumentStore = Depends(get_store)
):
    """List the direct children of a folder, or the root folders"""
    folders = await FolderService(store).list_folders(parent_id)
    return [FolderResponse.from_folder(folder) for folder in folders]

@router.get("/users/{user_id}", response_model=FolderListing)
async def list_folders_for_user(
    user_id: str,
    parent_id: Optional[str] = Query(None),
    store: DocumentStore = Depends(get_store)
):
    """List folders assigned to a user at one level of the tree"""
    folders, files = await FolderService(store).list_folders_for_user(user_id, parent_id)
    return FolderListing(
        folders=[FolderResponse.from_folder(folder) for folder in folders],
        files=[FileResponse.from_file(file) for file in files]
    )

@router.get("/{folder_id}", response_model=FolderDetails)
async def get_folder(
    folder_id: str,
    store: DocumentStore = Depends(get_store)
):
    """Get a folder with its parent chain"""
    return await FolderService(store).get_folder(folder_id)

@router.patch("/{folder_id}", response_model=FolderResponse)
async def rename_folder(
    folder_id: str,
    folder_in: FolderRename,
    store: DocumentStore = Depends(get_store)
):
    """Rename a folder"""
    folder = await FolderService(store).rename_folder(folder_id, folder_in.name)
    return FolderResponse.from_folder(folder)

@router.delete("/{folder_id}", response_model=CascadeResult)
async def delete_folder(
    folder_id: str,
    store: DocumentStore = Depends(get_store)
):
    """Delete a folder with all of its files and subfolders"""
    return await FolderService(store).delete_folder(folder_id, missing_ok=False)

@router.post("/{folder_id}/assignees", response_model=FolderResponse)
async def add_assignee(
    folder_id: str,
    request: AssigneeRequest,
    store: DocumentStore = Depends(get_store)
):
    """Assign a user to a folder, optionally to its direct subfolders too"""
    folder = await FolderService(store).add_assignee(
        folder_id, request.assignee, request.propagate_to_children
    )
    return FolderResponse.from_folder(folder)

@router.post("/{folder_id}/assignees/remove", response_model=FolderResponse)
async def remove_assignee(
    folder_id: str,
    assignee: Assignee,
    store: DocumentStore = Depends(get_store)
):
    """Remove a user assignment from a folder"""
    folder = await FolderService(store).remove_assignee(folder_id, assignee)
    return FolderResponse.from_folder(folder)
