import pytest
from unittest.mock import AsyncMock, MagicMock

from authgate.adapter.services.password_hasher import BcryptPasswordHasher
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.secret_codec import SecretCodec
from authgate.app.use_cases.auth import SessionLifecycle
from authgate.domain.entities import Account, AccountRole, AccountStatus
from authgate.settings import AuthSettings
from tests.unit.fakes import TEST_PASSWORD, InMemoryUnitOfWork


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def settings():
    return AuthSettings(jwt_secret="unit-test-secret", bcrypt_rounds=4)


@pytest.fixture
def codec(settings):
    return SecretCodec(bcrypt_rounds=settings.bcrypt_rounds)


@pytest.fixture
def issuer(settings, codec):
    return CredentialIssuer(settings, codec)


@pytest.fixture
def password_hasher(settings):
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


@pytest.fixture
def store():
    return InMemoryUnitOfWork()


@pytest.fixture
def lifecycle(store, settings, codec, issuer):
    return SessionLifecycle(store, settings, codec, issuer)


@pytest.fixture
def account(store, password_hasher):
    """Active account a@x.com / secret1 in the in-memory store"""
    row = Account(
        id=1,
        email="a@x.com",
        password_hash=password_hasher.hash(TEST_PASSWORD),
        role=AccountRole.user,
        status=AccountStatus.active,
    )
    store.accounts.rows[row.id] = row
    store.accounts._next_id = 2
    return row
