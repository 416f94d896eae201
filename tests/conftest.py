"""
Shared pytest fixtures.

Provides:
    - db: AsyncSession on a fresh SQLite database (tables recreated per test)
    - client: httpx AsyncClient bound to the FastAPI app
    - seed: factory helpers for users, properties, landlord profiles, invites
    - auth_headers: Bearer headers for a given uid/email

Environment is pinned before any upkeep import so the module-level engine
and settings pick up the test database.
"""

import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.gettempdir(), f"upkeep-test-{os.getpid()}.db"
)
os.environ["OPENAI_API_KEY"] = ""
os.environ["MLFLOW_TRACKING_ENABLED"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from main import app  # noqa: E402
from upkeep.core.security import create_access_token  # noqa: E402
from upkeep.db.session import AsyncSessionLocal, engine  # noqa: E402
from upkeep.dependencies import AuthenticatedCaller  # noqa: E402
from upkeep.models import (  # noqa: E402
    Base,
    Invite,
    InviteStatus,
    LandlordProfile,
    Property,
    User,
    UserRole,
)


@pytest.fixture
async def _database():
    """Drop and recreate all tables; dispose pooled connections afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(_database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(_database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers():
    def _headers(uid: str, email: str, role: str = "tenant") -> dict:
        token = create_access_token(subject=uid, email=email, role=role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


class Seed:
    """Small factory for workflow fixtures. Every helper commits."""

    def __init__(self, session) -> None:
        self.db = session

    async def user(self, email: str, role: UserRole = UserRole.tenant, **fields) -> User:
        user = User(email=email, role=role.value, **fields)
        self.db.add(user)
        await self.db.commit()
        return user

    async def landlord(self, email: str = "landlord@example.com", with_profile: bool = True, **fields) -> User:
        fields.setdefault("display_name", "Lena Landlord")
        user = await self.user(email, role=UserRole.landlord, **fields)
        if with_profile:
            self.db.add(LandlordProfile(id=user.id, tenants=[], contractors=[], invites_sent=[]))
            await self.db.commit()
        return user

    async def property(self, landlord: User, name: str = "Maple Court") -> Property:
        prop = Property(name=name, landlord_id=landlord.id, tenants=[])
        self.db.add(prop)
        await self.db.commit()
        return prop

    async def invite(
        self,
        landlord: User,
        prop: Property,
        email: str = "tenant@example.com",
        status: InviteStatus = InviteStatus.pending,
    ) -> Invite:
        invite = Invite(
            landlord_id=landlord.id,
            landlord_name=landlord.display_name,
            property_id=prop.id,
            property_name=prop.name,
            tenant_email=email,
            status=status.value,
        )
        self.db.add(invite)
        await self.db.commit()
        return invite


@pytest.fixture
def seed(db):
    return Seed(db)


def caller_for(user: User) -> AuthenticatedCaller:
    return AuthenticatedCaller(uid=user.id, email=user.email, role=user.role)


@pytest.fixture
def as_caller():
    return caller_for
