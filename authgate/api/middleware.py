import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)


async def log_requests(request: Request, call_next):
    """One line per request; never logs bodies, cookies or headers"""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    identity = getattr(request.state, "identity", None)
    account_id = identity.account.id if identity is not None else "-"
    client_ip = request.client.host if request.client else "-"

    logger.info(
        f"{client_ip} {request.method} {request.url.path} "
        f"{response.status_code} {duration_ms}ms account={account_id}"
    )
    return response
