import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import authgate.domain.entities  # noqa: F401  (registers tables)
from authgate.adapter.services.password_hasher import BcryptPasswordHasher
from authgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authgate.depends import get_unit_of_work
from authgate.domain.entities import Account, AccountRole, AccountStatus
from config import ApplicationConfig
from tests.utils.auth_helpers import TEST_JWT_SECRET, TEST_PASSWORD


class TestConfig(ApplicationConfig):
    __test__ = False

    JWT_SECRET = TEST_JWT_SECRET
    BCRYPT_ROUNDS = 4
    CORS_ORIGINS = []
    ENABLE_LOGGING_MIDDLEWARE = True


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def make_account(db_session):
    """Insert an account and return its id"""
    hasher = BcryptPasswordHasher(rounds=TestConfig.BCRYPT_ROUNDS)

    async def _make_account(
        email: str,
        password: str = TEST_PASSWORD,
        role: AccountRole = AccountRole.user,
        status: AccountStatus = AccountStatus.active,
    ) -> int:
        account = Account(
            email=email,
            password_hash=hasher.hash(password),
            role=role,
            status=status,
        )
        db_session.add(account)
        await db_session.commit()
        await db_session.refresh(account)
        return account.id

    return _make_account


@pytest_asyncio.fixture
async def client(db_session):
    from authgate.api.app import create_app

    app = create_app(TestConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
