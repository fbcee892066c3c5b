import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from basamu.config import settings
from basamu.database import Base, get_db
from basamu.main import app
from basamu.models import UserRole
from basamu.services.admin_console import AdminConsole
from basamu.services.session_service import Session, SessionContext
from basamu.services.storage_service import get_blob_store

TEST_DB_URL = "sqlite+aiosqlite:///./test_basamu.db"

engine = create_async_engine(TEST_DB_URL, poolclass=NullPool)
TestingSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

ADMIN_ID = "8f14e45f-ceea-467e-a9b5-000000000001"
MEMBER_ID = "8f14e45f-ceea-467e-a9b5-000000000002"


async def override_get_db():
    async with TestingSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


class FakeBlobStore:
    """In-memory blob store that records calls and can be told to fail."""

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.deletes = []
        self.fail_upload = False
        self.fail_delete = False

    async def upload_file(self, bucket, path, data, content_type, overwrite=False):
        self.uploads.append({"bucket": bucket, "path": path, "content_type": content_type, "overwrite": overwrite})
        if self.fail_upload:
            raise RuntimeError("storage unavailable")
        self.objects[f"{bucket}/{path}"] = data
        kind = "video" if content_type.startswith("video/") else "image"
        return f"https://res.cloudinary.com/demo/{kind}/upload/v1/{bucket}/{path}"

    async def delete_file(self, bucket, path, resource_type="image"):
        self.deletes.append({"bucket": bucket, "path": path, "resource_type": resource_type})
        if self.fail_delete:
            raise RuntimeError("storage delete failed")
        self.objects.pop(f"{bucket}/{path}", None)
        return {"result": "ok"}


async def _create_all():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _drop_all():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def setup_db():
    asyncio.run(_create_all())
    yield
    asyncio.run(_drop_all())


@pytest.fixture
def blob_store():
    store = FakeBlobStore()
    app.dependency_overrides[get_blob_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_blob_store, None)


@pytest.fixture
def client(blob_store):
    return TestClient(app)


@pytest.fixture
def seed_roles():
    seed(
        UserRole(user_id=ADMIN_ID, role="admin"),
        UserRole(user_id=MEMBER_ID, role="member"),
    )


def seed(*rows):
    async def _seed():
        async with TestingSession() as db:
            db.add_all(rows)
            await db.commit()
    asyncio.run(_seed())


def fetch_all(model, *order_by):

    async def _fetch():
        async with TestingSession() as db:
            result = await db.execute(select(model).order_by(*order_by))
            return list(result.scalars().all())
    return asyncio.run(_fetch())


def run_console(store, action, user_id=ADMIN_ID):
    """Run `action(console)` against a freshly mounted admin console."""
    async def _run():
        async with TestingSession() as db:
            console = AdminConsole(db, store, SessionContext(Session(user_id=user_id))).mount()
            try:
                return await action(console)
            finally:
                console.unmount()
    return asyncio.run(_run())


def make_token(user_id: str, email: str = "member@example.com", **metadata) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "aud": settings.SUPABASE_JWT_AUDIENCE,
        "email": email,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
        "user_metadata": metadata,
    }
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: str, **metadata) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, **metadata)}"}


def run_sql(*statements):
    """Execute raw SQL against the test database, e.g. to install failing triggers."""
    async def _run():
        async with engine.begin() as conn:
            for statement in statements:
                await conn.execute(text(statement))
    asyncio.run(_run())
