import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.db.session import get_store
from app.db.store import DocumentStore
from app.main import app
from app.models.file import FileUpload
from app.models.folder import Assignee, AssigneeRole, FolderCreate
from app.services.file_service import FileService
from app.services.folder_service import FolderService

# Test database configuration
TEST_MONGODB_DB = "foldertree_test"


@pytest_asyncio.fixture
async def test_db():
    """Fixture for an in-memory MongoDB database (for async repository tests)."""
    client = AsyncMongoMockClient()
    yield client[TEST_MONGODB_DB]


@pytest_asyncio.fixture
async def store(test_db) -> DocumentStore:
    return DocumentStore(test_db, timeout=5, max_retries=1, backoff=0)


@pytest_asyncio.fixture
async def folder_service(store) -> FolderService:
    return FolderService(store)


@pytest_asyncio.fixture
async def file_service(store) -> FileService:
    return FileService(store)


@pytest.fixture
def test_client():
    """Fixture for FastAPI test client backed by an in-memory database."""
    db = AsyncMongoMockClient()[TEST_MONGODB_DB]
    app.dependency_overrides[get_store] = lambda: DocumentStore(db, max_retries=1, backoff=0)

    # No context manager: the lifespan would connect to a real MongoDB
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def owner() -> Assignee:
    return Assignee(
        user_id="jane@example.com",
        name="Jane Cruz",
        role=AssigneeRole.OWNER,
        description="Creator of the folder"
    )


@pytest_asyncio.fixture
async def area_tree(folder_service, file_service):
    """
    Area 1
    ├── Sub A      (no files)
    └── Sub B      (2 files)
        └── Deep   (1 file)
    """
    area = await folder_service.create_folder(FolderCreate(name="Area 1"))
    sub_a = await folder_service.create_folder(FolderCreate(name="Sub A", parent_id=str(area.id)))
    sub_b = await folder_service.create_folder(FolderCreate(name="Sub B", parent_id=str(area.id)))
    deep = await folder_service.create_folder(FolderCreate(name="Deep", parent_id=str(sub_b.id)))

    for name in ("charter.pdf", "minutes.docx"):
        await file_service.upload_file(FileUpload(folder_id=str(sub_b.id), name=name))
    await file_service.upload_file(FileUpload(folder_id=str(deep.id), name="photo.png"))

    return {"area": area, "sub_a": sub_a, "sub_b": sub_b, "deep": deep}
