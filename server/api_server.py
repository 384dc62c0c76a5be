"""FastAPI application entry point for the document signing relay."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

load_dotenv()

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.storage.StorageClientManager import StorageClientManager
from shared.clients.converter.ConverterClientManager import ConverterClientManager
from shared.clients.mail.MailClientManager import MailClientManager
from shared.pdf.PdfStamper import PdfStamper
from server.core.IntakeService import IntakeService
from server.core.SignService import SignService
from server.routers.UploadRouter import router as upload_router
from server.routers.SignRouter import router as sign_router

logging = setup_logging()
helper_config = HelperConfig(logger=logging)
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = helper_config

    storage_client = StorageClientManager(helper_config=helper_config).get_client()
    converter_client = ConverterClientManager(helper_config=helper_config).get_client()
    mail_client = MailClientManager(helper_config=helper_config).get_client()
    clients: list[ClientInterface] = [storage_client, converter_client, mail_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.storage_client = storage_client
    app.state.converter_client = converter_client
    app.state.mail_client = mail_client

    app.state.intake_service = IntakeService(
        helper_config=helper_config,
        storage_client=storage_client,
    )
    stamper = PdfStamper(helper_config=helper_config)
    app.state.sign_service = SignService(
        helper_config=helper_config,
        storage_client=storage_client,
        converter_client=converter_client,
        mail_client=mail_client,
        stamper=stamper,
    )

    await check_connections(clients)
    if not stamper.has_font():
        logging.warning(
            "Signature font %s not found. Signing requests will fail until SIGN_FONT_PATH points at a TTF file.",
            stamper.font_path,
        )
    logging.info("Signing relay ready.", color="green")

    # while the app is running...
    yield

    # when the app shuts down, close all clients
    logging.info("Shutting down — closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="sign_relay",
    description=(
        "Minimal document-signing relay. POST /upload stores a Word document and returns a share link; "
        "POST /sign/{file_id} converts it to PDF, stamps the signer's name and signature image onto the "
        "first page and emails the result to the configured mailbox."
    ),
    version=app_version,
    lifespan=lifespan,
)

max_body_bytes = int(helper_config.get_number_val("API_SERVER_MAX_BODY_BYTES", default=10 * 1024 * 1024))


class BodySizeLimitMiddleware:
    """Reject request bodies larger than API_SERVER_MAX_BODY_BYTES with a 413.

    The declared Content-Length is checked first. Bodies without one
    (chunked uploads) are read up to the limit before the app sees them
    and replayed to it as a single message.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = max_body_bytes
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            await self._reject(scope, receive, send)
            return

        body = bytearray()
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body.extend(message.get("body", b""))
            if len(body) > limit:
                logging.warning("Rejected request body to %s: more than %d bytes", scope.get("path"), limit)
                await self._reject(scope, receive, send)
                return
            more_body = message.get("more_body", False)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": bytes(body), "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    @staticmethod
    async def _reject(scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(status_code=413, content={"error": "Request body too large"})
        await response(scope, receive, send)


# CORS wraps the body limit so 413 responses carry CORS headers
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[helper_config.get_string_val("API_SERVER_CORS_ORIGIN", default="http://localhost:3000")],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": errors or "Invalid request"})


app.include_router(upload_router)
app.include_router(sign_router)


async def check_connections(clients: list[ClientInterface]) -> None:
    """Check every configured backend on startup.

    All failures are non-fatal: the server stays up and the affected
    requests fail with a 500 until the backend is fixed.
    """
    for client in clients:
        if not await client.do_healthcheck():
            logging.warning(
                "%s client '%s' is not usable. Signing requests may fail.",
                client.get_client_type(),
                client.get_engine_name(),
            )


if __name__ == "__main__":
    import uvicorn

    host = helper_config.get_string_val("API_SERVER_HOST", default="0.0.0.0")
    port = int(helper_config.get_number_val("API_SERVER_PORT", default=5000))
    logging.info(
        "Starting sign_relay API Server v%s from root dir: %s on http://%s:%d ...",
        app_version,
        helper_config.get_root_dir(),
        host,
        port,
    )
    uvicorn.run(app, host=host, port=port)
