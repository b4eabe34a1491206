"""Domain exceptions for folder and file operations."""
from typing import Optional


class FolderTreeError(Exception):
    """Base exception for all folder tree errors."""
    pass


class ValidationError(FolderTreeError):
    """Raised when a name violates a naming policy. Nothing is persisted."""
    pass


class NotFoundError(FolderTreeError):
    """Raised when a referenced folder or file does not exist."""

    def __init__(self, kind: str, object_id: str):
        self.kind = kind
        self.object_id = object_id
        super().__init__(f"{kind.capitalize()} not found: {object_id}")


class LimitExceededError(FolderTreeError):
    """Raised when a folder has reached its upload limit."""

    def __init__(self, folder_id: str, upload_limit: int):
        self.folder_id = folder_id
        self.upload_limit = upload_limit
        super().__init__("Upload limit reached for this folder")


class StoreError(FolderTreeError):
    """Raised when the underlying document store fails. The driver error is kept in `cause`."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class PartialCascadeFailure(FolderTreeError):
    """
    Raised when a recursive folder deletion fails partway.

    Work completed before the failure is not rolled back. Re-invoking the
    deletion on the same root is safe.
    """

    def __init__(
        self,
        root_folder_id: str,
        failed_folder_id: str,
        failed_folder_name: Optional[str],
        cause: BaseException,
        deleted_files: int = 0,
        deleted_folders: int = 0,
    ):
        self.root_folder_id = root_folder_id
        self.failed_folder_id = failed_folder_id
        self.failed_folder_name = failed_folder_name
        self.cause = cause
        self.deleted_files = deleted_files
        self.deleted_folders = deleted_folders
        super().__init__(
            f"Cascade deletion of {root_folder_id} failed at folder {failed_folder_id}: {cause}"
        )

    def to_dict(self) -> dict:
        return {
            "root_folder_id": self.root_folder_id,
            "failed_folder_id": self.failed_folder_id,
            "failed_folder_name": self.failed_folder_name,
            "cause": str(self.cause),
            "deleted_files": self.deleted_files,
            "deleted_folders": self.deleted_folders,
        }
