"""
Session Lifecycle

The session state machine: create-or-reuse on login, rotate on refresh,
revoke on logout and the validity check behind every protected request.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from authgate.app import errors
from authgate.app.repositories.session_repository import SessionConflictError
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.secret_codec import SecretCodec
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.domain.base import utcnow
from authgate.libs.result import Result, Return
from authgate.settings import AuthSettings
from .dtos import AccountInfo, Identity, IssuedSession, TokenPair

logger = logging.getLogger(__name__)

# Collaborator failures: surfaced as retryable infrastructure errors, never as auth decisions
STORE_FAILURES = (TimeoutError, SQLAlchemyError)


class SessionLifecycle:
    """
    Session state machine over the session store.

    States (derived, see Session.state):
    - active: revoked_at is null and expires_at is in the future
    - expired: revoked_at is null and expires_at has passed
    - revoked: revoked_at is set (terminal for the lineage)

    Business Rules:
    - At most one active session per account; login reuses it
    - When several rows look active, the highest id wins and the rest are revoked
    - Rotation replaces secret hash and expiry in one conditional write
    - Expiry slides to now + refresh TTL on every login and rotation
    - Lost write races retry from the read, bounded by session_write_retries
    - Revoke never reports whether the token was known
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings: AuthSettings,
        codec: SecretCodec,
        issuer: CredentialIssuer,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.settings = settings
        self.codec = codec
        self.issuer = issuer
        self.clock = clock

    def _timeout(self):
        return asyncio.timeout(self.settings.store_timeout_seconds)

    def _new_secret(self) -> tuple[str, str]:
        raw_secret = self.codec.generate_secret(self.settings.refresh_secret_bytes)
        return raw_secret, self.codec.hash_secret(raw_secret)

    async def login(self, account_id: int) -> Result[IssuedSession]:
        """
        Establish the account's single active session.

        Reuses the active row if there is one (new secret, new expiry),
        otherwise creates a new row.

        Returns:
            Result with IssuedSession carrying the raw secret, or Error
        """
        raw_secret, secret_hash = self._new_secret()

        for attempt in range(1, self.settings.session_write_retries + 1):
            async with self.uow:
                try:
                    async with self._timeout():
                        now = self.clock()
                        expires_at = now + self.settings.refresh_ttl
                        existing = await self.uow.sessions.find_active_by_account(
                            account_id, now
                        )

                        if existing is None:
                            stale = await self.uow.sessions.revoke_expired_by_account(
                                account_id, now
                            )
                            session = await self.uow.sessions.create(
                                account_id, secret_hash, expires_at
                            )
                            logger.info(
                                f"Created session {session.id} for account {account_id} "
                                f"(closed {stale} expired)"
                            )
                        else:
                            session = await self.uow.sessions.update_secret(
                                existing.id, secret_hash, expires_at, existing.version
                            )
                            superseded = await self.uow.sessions.revoke_all_except(
                                account_id, session.id
                            )
                            if superseded:
                                logger.warning(
                                    f"Account {account_id} had {superseded} extra live "
                                    f"session(s); kept {session.id}"
                                )
                            logger.info(
                                f"Reused session {session.id} for account {account_id}"
                            )

                        issued = IssuedSession(
                            session_id=session.id,
                            account_id=account_id,
                            raw_secret=raw_secret,
                            expires_at=session.expires_at,
                        )
                        await self.uow.commit()
                    return Return.ok(issued)
                except SessionConflictError:
                    logger.warning(
                        f"Login for account {account_id} lost a write race "
                        f"(attempt {attempt}/{self.settings.session_write_retries})"
                    )
                except STORE_FAILURES as exc:
                    logger.error(f"Session store failure during login: {exc!r}")
                    return Return.err(errors.infrastructure_error())

        return Return.err(errors.conflict())

    async def rotate(self, refresh_token: object) -> Result[TokenPair]:
        """
        Exchange a refresh token for a new access/refresh pair.

        The presented secret becomes unusable once this succeeds.

        Errors:
            - MALFORMED_TOKEN: token cannot be decoded
            - SESSION_INVALID: session absent, revoked or expired
            - SECRET_MISMATCH: secret does not match (possible replay)
            - ACCOUNT_MISSING: owning account is gone
            - CONFLICT: lost every write race
            - INFRASTRUCTURE_ERROR: store timeout or failure
        """
        parts = self.codec.decode_refresh_token(refresh_token)
        if parts is None:
            return Return.err(errors.malformed_token())

        new_secret: Optional[tuple[str, str]] = None

        for attempt in range(1, self.settings.session_write_retries + 1):
            async with self.uow:
                try:
                    async with self._timeout():
                        now = self.clock()
                        session = await self.uow.sessions.get_by_id(parts.session_id)
                        if session is None or not session.is_active(now):
                            return Return.err(errors.session_invalid())

                        if not self.codec.verify_secret(parts.secret, session.secret_hash):
                            # Replay of a rotated-out or stolen token. Hook for
                            # account-wide revocation; the session is left alone.
                            logger.warning(
                                f"Refresh secret mismatch for session {session.id} "
                                f"(account {session.account_id})"
                            )
                            return Return.err(errors.secret_mismatch())

                        account = await self.uow.accounts.get_by_id(session.account_id)
                        if account is None:
                            return Return.err(errors.account_missing())

                        if new_secret is None:
                            new_secret = self._new_secret()
                        raw_secret, secret_hash = new_secret

                        updated = await self.uow.sessions.update_secret(
                            session.id,
                            secret_hash,
                            now + self.settings.refresh_ttl,
                            session.version,
                        )
                        session_id, account_id = updated.id, updated.account_id
                        await self.uow.commit()

                    logger.info(f"Rotated session {session_id} for account {account_id}")
                    return Return.ok(
                        TokenPair(
                            access_token=self.issuer.issue_access_credential(
                                account_id, session_id
                            ),
                            refresh_token=self.issuer.issue_refresh_token(
                                session_id, raw_secret
                            ),
                        )
                    )
                except SessionConflictError:
                    logger.warning(
                        f"Rotation of session {parts.session_id} lost a write race "
                        f"(attempt {attempt}/{self.settings.session_write_retries})"
                    )
                except STORE_FAILURES as exc:
                    logger.error(f"Session store failure during rotate: {exc!r}")
                    return Return.err(errors.infrastructure_error())

        return Return.err(errors.conflict())

    async def verify(self, access_credential: object) -> Result[Identity]:
        """
        Resolve the identity behind an access credential.

        Signature and expiry are checked first; the session record is then
        re-read so that revocation overrides a still-valid signature. The
        refresh secret is not consulted.

        Errors:
            - EXPIRED_OR_INVALID_SIGNATURE: bad signature, expired, malformed
            - SESSION_INVALID: session absent, revoked, expired or not the token's account
            - ACCOUNT_MISSING: owning account is gone
            - INFRASTRUCTURE_ERROR: store timeout or failure
        """
        if not isinstance(access_credential, str) or not access_credential:
            return Return.err(errors.expired_or_invalid_signature())

        claims = self.issuer.decode_access_credential(access_credential)
        if claims is None:
            return Return.err(errors.expired_or_invalid_signature())

        async with self.uow:
            try:
                async with self._timeout():
                    now = self.clock()
                    session = await self.uow.sessions.get_by_id(claims.session_id)
                    if (
                        session is None
                        or not session.is_active(now)
                        or session.account_id != claims.account_id
                    ):
                        return Return.err(errors.session_invalid())

                    account = await self.uow.accounts.get_by_id(session.account_id)
                    if account is None:
                        return Return.err(errors.account_missing())

                    return Return.ok(
                        Identity(
                            account=AccountInfo.from_entity(account),
                            session_id=session.id,
                        )
                    )
            except STORE_FAILURES as exc:
                logger.error(f"Session store failure during verify: {exc!r}")
                return Return.err(errors.infrastructure_error())

    async def revoke(self, refresh_token: object) -> Result[None]:
        """
        Terminate the session a refresh token belongs to.

        Idempotent: malformed, unknown, already revoked or mismatching
        tokens all succeed without effect.
        """
        parts = self.codec.decode_refresh_token(refresh_token)
        if parts is None:
            return Return.ok(None)

        async with self.uow:
            try:
                async with self._timeout():
                    session = await self.uow.sessions.get_by_id(parts.session_id)
                    if session is None or session.revoked_at is not None:
                        return Return.ok(None)

                    if not self.codec.verify_secret(parts.secret, session.secret_hash):
                        return Return.ok(None)

                    revoked = await self.uow.sessions.revoke(session.id)
                    await self.uow.commit()
            except STORE_FAILURES as exc:
                logger.error(f"Session store failure during revoke: {exc!r}")
                return Return.err(errors.infrastructure_error())

        if revoked:
            logger.info(f"Revoked session {parts.session_id}")
        return Return.ok(None)
