from fastapi import APIRouter
from app.api.v1.endpoints import folders, files, stats

api_router = APIRouter()

api_router.include_router(folders.router, prefix="/folders", tags=["folders"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
