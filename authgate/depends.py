from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from authgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authgate.api.error import ClientError
from authgate.app import errors
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.email_sender import IEmailSender
from authgate.app.services.password_hasher import IPasswordHasher
from authgate.app.services.secret_codec import SecretCodec
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.app.use_cases.auth import Identity, SessionLifecycle
from authgate.domain.entities import AccountRole
from authgate.settings import AuthSettings

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_settings(request: Request) -> AuthSettings:
    return request.app.state.settings


def get_secret_codec(request: Request) -> SecretCodec:
    return request.app.state.secret_codec


def get_credential_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.credential_issuer


def get_password_hasher(request: Request) -> IPasswordHasher:
    return request.app.state.password_hasher


def get_email_sender(request: Request) -> IEmailSender:
    return request.app.state.email_sender


def get_session_lifecycle(
    uow: UnitOfWork = Depends(get_unit_of_work),
    settings: AuthSettings = Depends(get_settings),
    codec: SecretCodec = Depends(get_secret_codec),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
) -> SessionLifecycle:
    return SessionLifecycle(uow, settings, codec, issuer)


async def get_current_identity(request: Request) -> Identity:
    """
    Identity attached by the access gate.

    Raises:
        ClientError: 401 if the request was not authenticated
    """
    identity: Optional[Identity] = getattr(request.state, "identity", None)
    if identity is None:
        error = errors.authentication_required()
        raise ClientError(error, status_code=error.status)
    return identity


def require_role(role: AccountRole):
    """Dependency factory rejecting identities without the given role"""

    async def _require_role(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.account.role != role.value:
            error = errors.forbidden(f"{role.value} role required")
            raise ClientError(error, status_code=error.status)
        return identity

    return _require_role


async def init_db() -> None:
    """Create missing tables"""
    from sqlmodel import SQLModel

    import authgate.domain.entities  # noqa: F401  (registers tables)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
