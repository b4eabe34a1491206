from typing import Dict, List
from fastapi import APIRouter, Depends

from app.db.session import get_store
from app.db.store import DocumentStore
from app.models.stats import (
    AreaFolder,
    FolderCounts,
    FolderUsage,
    ProgressReport,
    RootFolderFileCount,
    SubtreeFileCount,
)
from app.services.stats_service import StatsService

router = APIRouter()

@router.get("/progress", response_model=ProgressReport)
async def overall_progress(store: DocumentStore = Depends(get_store)):
    """Share of folders that hold at least one file"""
    return await StatsService(store).overall_progress()

@router.get("/counts", response_model=FolderCounts)
async def folder_counts(store: DocumentStore = Depends(get_store)):
    return await StatsService(store).folder_counts()

@router.get("/empty-subfolders", response_model=Dict[str, List[str]])
async def empty_subfolders(store: DocumentStore = Depends(get_store)):
    """Empty direct subfolders of each root folder"""
    return await StatsService(store).per_root_folder_empty_subfolders()

@router.get("/completed-subfolders", response_model=Dict[str, List[str]])
async def completed_subfolders(store: DocumentStore = Depends(get_store)):
    """Direct subfolders of each root folder that hold files"""
    return await StatsService(store).per_root_folder_non_empty_subfolders()

@router.get("/root-file-counts", response_model=List[RootFolderFileCount])
async def root_file_counts(store: DocumentStore = Depends(get_store)):
    return await StatsService(store).count_files_in_root_folders()

@router.get("/folders/{folder_id}/file-count", response_model=SubtreeFileCount)
async def subtree_file_count(folder_id: str, store: DocumentStore = Depends(get_store)):
    total = await StatsService(store).count_files_in_subtree(folder_id)
    return SubtreeFileCount(folder_id=folder_id, total_files=total)

@router.get("/folders/{folder_id}/usage", response_model=FolderUsage)
async def folder_usage(folder_id: str, store: DocumentStore = Depends(get_store)):
    return await StatsService(store).folder_usage(folder_id)

@router.get("/areas/{area_name}", response_model=List[AreaFolder])
async def area_folders_and_files(area_name: str, store: DocumentStore = Depends(get_store)):
    """Folders named area_name with their files and subfolders"""
    return await StatsService(store).fetch_area_folders_and_files(area_name)
