import asyncio
import logging
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from authgate.app.errors import ErrorCode
from authgate.app.repositories.session_repository import SessionConflictError
from authgate.app.use_cases.auth import SessionLifecycle
from authgate.domain.base import utcnow
from authgate.domain.entities import Session, SessionState
from authgate.settings import AuthSettings


async def login_tokens(lifecycle, issuer, account_id=1):
    result = await lifecycle.login(account_id)
    assert result.is_ok()
    issued = result.value
    access = issuer.issue_access_credential(account_id, issued.session_id)
    refresh = issuer.issue_refresh_token(issued.session_id, issued.raw_secret)
    return issued, access, refresh


# ============================================================================
# login
# ============================================================================


@pytest.mark.asyncio
async def test_login_creates_session_when_none_active(lifecycle, store, codec, settings, account):
    before = utcnow()

    result = await lifecycle.login(account.id)

    assert result.is_ok()
    issued = result.value
    row = store.sessions.rows[issued.session_id]
    assert row.account_id == account.id
    assert row.revoked_at is None
    assert codec.verify_secret(issued.raw_secret, row.secret_hash)
    assert row.secret_hash != issued.raw_secret
    assert row.expires_at >= before + settings.refresh_ttl
    assert store.commits == 1


@pytest.mark.asyncio
async def test_login_reuses_active_session(lifecycle, store, codec, account):
    first = (await lifecycle.login(account.id)).value
    second = (await lifecycle.login(account.id)).value

    assert second.session_id == first.session_id
    assert second.raw_secret != first.raw_secret
    row = store.sessions.rows[first.session_id]
    assert codec.verify_secret(second.raw_secret, row.secret_hash)
    assert not codec.verify_secret(first.raw_secret, row.secret_hash)
    assert len(store.sessions.rows) == 1


@pytest.mark.asyncio
async def test_login_after_logout_creates_new_lineage(lifecycle, issuer, store, account):
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    await lifecycle.revoke(refresh)

    again = (await lifecycle.login(account.id)).value

    assert again.session_id != issued.session_id
    assert store.sessions.rows[issued.session_id].revoked_at is not None
    assert [r.id for r in store.sessions.live_rows(account.id, utcnow())] == [again.session_id]


@pytest.mark.asyncio
async def test_login_after_expiry_closes_stale_row(lifecycle, store, codec, account):
    stale = store.sessions.insert(
        Session(
            account_id=account.id,
            secret_hash=codec.hash_secret("aa"),
            expires_at=utcnow() - timedelta(minutes=1),
        )
    )

    issued = (await lifecycle.login(account.id)).value

    assert issued.session_id != stale.id
    assert store.sessions.rows[stale.id].revoked_at is not None
    assert store.sessions.rows[stale.id].state(utcnow()) == SessionState.revoked


@pytest.mark.asyncio
async def test_login_picks_highest_id_and_supersedes_the_rest(lifecycle, store, codec, account):
    expires_at = utcnow() + timedelta(hours=1)
    older = store.sessions.insert(
        Session(account_id=account.id, secret_hash=codec.hash_secret("aa"), expires_at=expires_at)
    )
    newer = store.sessions.insert(
        Session(account_id=account.id, secret_hash=codec.hash_secret("bb"), expires_at=expires_at)
    )

    issued = (await lifecycle.login(account.id)).value

    assert issued.session_id == newer.id
    assert store.sessions.rows[older.id].revoked_at is not None
    assert len(store.sessions.live_rows(account.id, utcnow())) == 1


@pytest.mark.asyncio
async def test_concurrent_logins_leave_exactly_one_active_session(
    store, settings, codec, issuer, account
):
    first = SessionLifecycle(store.fork(), settings, codec, issuer)
    second = SessionLifecycle(store.fork(), settings, codec, issuer)

    results = await asyncio.gather(first.login(account.id), second.login(account.id))

    assert all(r.is_ok() for r in results)
    live = store.sessions.live_rows(account.id, utcnow())
    assert len(live) == 1
    # Exactly one of the two secrets survived
    matches = [codec.verify_secret(r.value.raw_secret, live[0].secret_hash) for r in results]
    assert matches.count(True) == 1


@pytest.mark.asyncio
async def test_login_gives_up_after_bounded_retries(store, codec, issuer, account):
    settings = AuthSettings(jwt_secret="s", bcrypt_rounds=4, session_write_retries=2)
    store.sessions.create = AsyncMock(side_effect=SessionConflictError("taken"))
    lifecycle = SessionLifecycle(store, settings, codec, issuer)

    result = await lifecycle.login(account.id)

    assert result.is_err()
    assert result.error.code == ErrorCode.CONFLICT.value
    assert result.error.status == 409
    assert store.sessions.create.await_count == 2
    assert store.commits == 0


@pytest.mark.asyncio
async def test_login_store_failure_is_infrastructure_error(lifecycle, store, account):
    store.sessions.find_active_by_account = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("db down"))
    )

    result = await lifecycle.login(account.id)

    assert result.is_err()
    assert result.error.code == ErrorCode.INFRASTRUCTURE_ERROR.value
    assert result.error.status == 503


@pytest.mark.asyncio
async def test_login_store_timeout_is_infrastructure_error(store, codec, issuer, account):
    settings = AuthSettings(jwt_secret="s", bcrypt_rounds=4, store_timeout_seconds=0.01)

    async def hang(*args):
        await asyncio.sleep(1)

    store.sessions.find_active_by_account = hang
    lifecycle = SessionLifecycle(store, settings, codec, issuer)

    result = await lifecycle.login(account.id)

    assert result.error.code == ErrorCode.INFRASTRUCTURE_ERROR.value


# ============================================================================
# rotate
# ============================================================================


@pytest.mark.asyncio
async def test_rotate_issues_new_pair_and_invalidates_old_token(lifecycle, issuer, store, codec, account):
    issued, _, refresh1 = await login_tokens(lifecycle, issuer, account.id)

    result = await lifecycle.rotate(refresh1)

    assert result.is_ok()
    refresh2 = result.value.refresh_token
    assert refresh2 != refresh1
    assert refresh2.startswith(f"{issued.session_id}.")
    assert issuer.decode_access_credential(result.value.access_token).session_id == issued.session_id

    replay = await lifecycle.rotate(refresh1)
    assert replay.is_err()
    assert replay.error.code == ErrorCode.SECRET_MISMATCH.value


@pytest.mark.asyncio
async def test_rotate_slides_expiry_from_now(store, codec, issuer, settings, account):
    clock_value = [utcnow()]
    lifecycle = SessionLifecycle(store, settings, codec, issuer, clock=lambda: clock_value[0])
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)

    clock_value[0] += timedelta(hours=20)
    result = await lifecycle.rotate(refresh)

    assert result.is_ok()
    assert store.sessions.rows[issued.session_id].expires_at == clock_value[0] + settings.refresh_ttl


@pytest.mark.asyncio
async def test_rotate_chain(lifecycle, issuer, account):
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)

    for _ in range(3):
        result = await lifecycle.rotate(refresh)
        assert result.is_ok()
        refresh = result.value.refresh_token


@pytest.mark.parametrize("token", [None, "", "garbage", "1", "x.deadbeef", "1.xyz"])
@pytest.mark.asyncio
async def test_rotate_malformed_token(lifecycle, store, token):
    result = await lifecycle.rotate(token)

    assert result.error.code == ErrorCode.MALFORMED_TOKEN.value
    assert result.error.status == 401


@pytest.mark.asyncio
async def test_rotate_unknown_session(lifecycle):
    result = await lifecycle.rotate("999.deadbeef")

    assert result.error.code == ErrorCode.SESSION_INVALID.value


@pytest.mark.asyncio
async def test_rotate_revoked_session(lifecycle, issuer, account):
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    await lifecycle.revoke(refresh)

    result = await lifecycle.rotate(refresh)

    assert result.error.code == ErrorCode.SESSION_INVALID.value


@pytest.mark.asyncio
async def test_rotate_expired_session(store, codec, issuer, settings, account):
    clock_value = [utcnow()]
    lifecycle = SessionLifecycle(store, settings, codec, issuer, clock=lambda: clock_value[0])
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)

    clock_value[0] = issued.expires_at
    result = await lifecycle.rotate(refresh)

    assert result.error.code == ErrorCode.SESSION_INVALID.value
    assert store.sessions.rows[issued.session_id].state(clock_value[0]) == SessionState.expired


@pytest.mark.asyncio
async def test_rotate_secret_mismatch_leaves_session_usable(lifecycle, issuer, account):
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    forged = issuer.issue_refresh_token(issued.session_id, "ab" * 32)

    mismatch = await lifecycle.rotate(forged)
    genuine = await lifecycle.rotate(refresh)

    assert mismatch.error.code == ErrorCode.SECRET_MISMATCH.value
    assert genuine.is_ok()


@pytest.mark.asyncio
async def test_rotate_secret_mismatch_logs_warning(lifecycle, issuer, account, caplog):
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    assert (await lifecycle.rotate(refresh)).is_ok()
    caplog.set_level(logging.INFO, logger="authgate")

    replay = await lifecycle.rotate(refresh)

    assert replay.error.code == ErrorCode.SECRET_MISMATCH.value
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    message = warnings[0].getMessage()
    assert warnings[0].name == "authgate.app.use_cases.auth.session_lifecycle"
    assert f"session {issued.session_id}" in message
    assert f"account {account.id}" in message
    assert refresh.split(".")[1] not in message


@pytest.mark.asyncio
async def test_rotate_account_missing(lifecycle, issuer, store, account):
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    del store.accounts.rows[account.id]

    result = await lifecycle.rotate(refresh)

    assert result.error.code == ErrorCode.ACCOUNT_MISSING.value


@pytest.mark.asyncio
async def test_concurrent_rotations_only_one_wins(store, settings, codec, issuer, account):
    lifecycle = SessionLifecycle(store, settings, codec, issuer)
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    first = SessionLifecycle(store.fork(), settings, codec, issuer)
    second = SessionLifecycle(store.fork(), settings, codec, issuer)

    results = await asyncio.gather(first.rotate(refresh), second.rotate(refresh))

    ok = [r for r in results if r.is_ok()]
    failed = [r for r in results if r.is_err()]
    assert len(ok) == 1
    assert len(failed) == 1
    assert failed[0].error.code == ErrorCode.SECRET_MISMATCH.value


@pytest.mark.asyncio
async def test_rotate_gives_up_after_bounded_retries(store, codec, issuer, account):
    settings = AuthSettings(jwt_secret="s", bcrypt_rounds=4, session_write_retries=3)
    lifecycle = SessionLifecycle(store, settings, codec, issuer)
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    store.sessions.update_secret = AsyncMock(side_effect=SessionConflictError("raced"))

    result = await lifecycle.rotate(refresh)

    assert result.error.code == ErrorCode.CONFLICT.value
    assert store.sessions.update_secret.await_count == 3


@pytest.mark.asyncio
async def test_rotate_store_failure_is_not_an_auth_decision(lifecycle, issuer, store, account):
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    store.sessions.get_by_id = AsyncMock(side_effect=TimeoutError())

    result = await lifecycle.rotate(refresh)

    assert result.error.code == ErrorCode.INFRASTRUCTURE_ERROR.value


# ============================================================================
# verify
# ============================================================================


@pytest.mark.asyncio
async def test_verify_resolves_identity(lifecycle, issuer, account):
    issued, access, _ = await login_tokens(lifecycle, issuer, account.id)

    result = await lifecycle.verify(access)

    assert result.is_ok()
    assert result.value.account.id == account.id
    assert result.value.account.email == "a@x.com"
    assert result.value.session_id == issued.session_id


@pytest.mark.asyncio
async def test_verify_survives_rotation(lifecycle, issuer, account):
    _, access1, refresh1 = await login_tokens(lifecycle, issuer, account.id)

    rotated = await lifecycle.rotate(refresh1)

    assert (await lifecycle.verify(access1)).is_ok()
    assert (await lifecycle.verify(rotated.value.access_token)).is_ok()


@pytest.mark.asyncio
async def test_verify_rejected_after_revoke(lifecycle, issuer, account):
    _, access, refresh = await login_tokens(lifecycle, issuer, account.id)
    assert issuer.decode_access_credential(access) is not None

    await lifecycle.revoke(refresh)
    result = await lifecycle.verify(access)

    assert result.error.code == ErrorCode.SESSION_INVALID.value


@pytest.mark.asyncio
async def test_verify_rejected_after_session_expiry(store, codec, issuer, settings, account):
    clock_value = [utcnow()]
    lifecycle = SessionLifecycle(store, settings, codec, issuer, clock=lambda: clock_value[0])
    issued, access, _ = await login_tokens(lifecycle, issuer, account.id)

    clock_value[0] = issued.expires_at + timedelta(seconds=1)

    assert (await lifecycle.verify(access)).error.code == ErrorCode.SESSION_INVALID.value


@pytest.mark.asyncio
async def test_verify_tampered_token(lifecycle, issuer, account):
    _, access, _ = await login_tokens(lifecycle, issuer, account.id)
    header, payload, signature = access.split(".")
    index = len(header) + len(payload) + 2 + len(signature) // 2
    tampered = access[:index] + ("A" if access[index] != "A" else "B") + access[index + 1 :]

    result = await lifecycle.verify(tampered)

    assert result.error.code == ErrorCode.EXPIRED_OR_INVALID_SIGNATURE.value


@pytest.mark.parametrize("token", [None, "", 123, "not-a-token"])
@pytest.mark.asyncio
async def test_verify_garbage(lifecycle, token):
    result = await lifecycle.verify(token)

    assert result.error.code == ErrorCode.EXPIRED_OR_INVALID_SIGNATURE.value


@pytest.mark.asyncio
async def test_verify_token_for_other_account_is_rejected(lifecycle, issuer, account):
    issued, _, _ = await login_tokens(lifecycle, issuer, account.id)
    forged = issuer.issue_access_credential(account.id + 1, issued.session_id)

    assert (await lifecycle.verify(forged)).error.code == ErrorCode.SESSION_INVALID.value


@pytest.mark.asyncio
async def test_verify_account_missing(lifecycle, issuer, store, account):
    _, access, _ = await login_tokens(lifecycle, issuer, account.id)
    del store.accounts.rows[account.id]

    assert (await lifecycle.verify(access)).error.code == ErrorCode.ACCOUNT_MISSING.value


@pytest.mark.asyncio
async def test_verify_store_failure(lifecycle, issuer, store, account):
    _, access, _ = await login_tokens(lifecycle, issuer, account.id)
    store.sessions.get_by_id = AsyncMock(side_effect=TimeoutError())

    assert (await lifecycle.verify(access)).error.code == ErrorCode.INFRASTRUCTURE_ERROR.value


# ============================================================================
# revoke
# ============================================================================


@pytest.mark.asyncio
async def test_revoke_marks_session_terminal(lifecycle, issuer, store, account):
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)

    result = await lifecycle.revoke(refresh)

    assert result.is_ok()
    assert store.sessions.rows[issued.session_id].revoked_at is not None


@pytest.mark.asyncio
async def test_revoke_twice_is_ok(lifecycle, issuer, store, account):
    issued, _, refresh = await login_tokens(lifecycle, issuer, account.id)

    assert (await lifecycle.revoke(refresh)).is_ok()
    revoked_at = store.sessions.rows[issued.session_id].revoked_at
    assert (await lifecycle.revoke(refresh)).is_ok()
    assert store.sessions.rows[issued.session_id].revoked_at == revoked_at


@pytest.mark.parametrize("token", [None, "", "garbage", "999.deadbeef"])
@pytest.mark.asyncio
async def test_revoke_unknown_or_malformed_is_ok(lifecycle, token):
    assert (await lifecycle.revoke(token)).is_ok()


@pytest.mark.asyncio
async def test_revoke_with_wrong_secret_is_silent_noop(lifecycle, issuer, store, account):
    issued, _, _ = await login_tokens(lifecycle, issuer, account.id)
    forged = issuer.issue_refresh_token(issued.session_id, "cd" * 32)

    result = await lifecycle.revoke(forged)

    assert result.is_ok()
    assert store.sessions.rows[issued.session_id].revoked_at is None


@pytest.mark.asyncio
async def test_revoke_store_failure_surfaces(lifecycle, issuer, store, account):
    _, _, refresh = await login_tokens(lifecycle, issuer, account.id)
    store.sessions.get_by_id = AsyncMock(side_effect=TimeoutError())

    assert (await lifecycle.revoke(refresh)).error.code == ErrorCode.INFRASTRUCTURE_ERROR.value
