from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
from authgate.adapter.services.email_sender import LoggingEmailSender
from authgate.adapter.services.password_hasher import BcryptPasswordHasher
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.secret_codec import SecretCodec
from authgate.settings import AuthSettings
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    message = exc.base_error.message
    if exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "Internal server error"
    error_dict = {"code": exc.base_error.code, "message": message}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


def create_app(ApplicationConfig) -> FastAPI:
    # Fails fast on a missing signing key
    settings = AuthSettings.from_config(ApplicationConfig)

    logging.basicConfig(level=getattr(ApplicationConfig, "LOG_LEVEL", "INFO"))

    from authgate.api.middleware import log_requests
    from authgate.api.routes import accounts, auth, health_check
    from authgate.api.utils.access_gate import access_gate

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from authgate.depends import init_db

        await init_db()
        yield

    app = FastAPI(
        title="authgate",
        version="0.1.0",
        lifespan=lifespan,
        dependencies=[Depends(access_gate)],
    )

    codec = SecretCodec(bcrypt_rounds=settings.bcrypt_rounds)
    app.state.settings = settings
    app.state.secret_codec = codec
    app.state.credential_issuer = CredentialIssuer(settings, codec)
    app.state.password_hasher = BcryptPasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.email_sender = LoggingEmailSender()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if getattr(ApplicationConfig, "ENABLE_LOGGING_MIDDLEWARE", True):
        app.middleware("http")(log_requests)

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(accounts.router, tags=["Accounts"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
