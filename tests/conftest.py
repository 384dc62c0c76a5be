import logging
import os
import tempfile
from pathlib import Path

import pytest
import reportlab

# the app reads its environment at import time
_ROOT = tempfile.mkdtemp(prefix="signrelay_tests_")
os.environ["ROOT_DIR"] = _ROOT
os.environ["SIGN_FONT_PATH"] = os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf")
os.environ.setdefault("TIMEZONE", "Asia/Jerusalem")

from fastapi.testclient import TestClient
from pdf_helpers import make_pdf, make_png_data_url
from server.api_server import app
from server.core.IntakeService import IntakeService
from server.core.SignService import SignService
from shared.clients.converter.ConverterClientInterface import ConverterClientInterface
from shared.clients.mail.MailClientInterface import MailClientInterface
from shared.clients.mail.models.MailResult import MailResult
from shared.clients.storage.local.StorageClientLocal import StorageClientLocal
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.config import EnvConfig
from shared.models.errors import ConversionError, DeliveryError


class FakeConverter(ConverterClientInterface):
    """Writes a generated PDF instead of calling LibreOffice."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.calls: list[Path] = []
        self.fail = False

    def _get_engine_name(self) -> str:
        return "Fake"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    async def do_healthcheck(self) -> bool:
        return True

    async def _do_convert(self, source: Path, target: Path) -> None:
        self.calls.append(source)
        if self.fail:
            raise ConversionError("converter exploded")
        target.write_bytes(make_pdf())


class FakeMail(MailClientInterface):
    """Records every dispatch, including a snapshot of the attachment."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.sent: list[dict] = []
        self.fail = False

    def _get_engine_name(self) -> str:
        return "Fake"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def get_sender(self) -> str:
        return "relay@example.com"

    def get_recipient(self) -> str:
        return "relay@example.com"

    async def do_healthcheck(self) -> bool:
        return True

    async def send(self, attachment_path: Path, subject: str, body: str, attachment_name: str | None = None) -> MailResult:
        if self.fail:
            raise DeliveryError("Mail delivery failed: 535 authentication failed")
        self.sent.append(
            {
                "path": Path(attachment_path),
                "subject": subject,
                "body": body,
                "attachment_name": attachment_name,
                "attachment": Path(attachment_path).read_bytes(),
            }
        )
        return MailResult(
            message_id=f"<{len(self.sent)}@test>",
            sender=self.get_sender(),
            recipients=[self.get_recipient()],
            attachment=attachment_name or Path(attachment_path).name,
        )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def logger():
    return ColorLogger(logging.getLogger("signrelay.tests"))


@pytest.fixture
def helper_config(logger, tmp_path, monkeypatch):
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("STORAGE_LOCAL_UPLOAD_DIR", str(tmp_path / "uploads"))
    return HelperConfig(logger=logger)


@pytest.fixture
def storage(helper_config):
    client = StorageClientLocal(helper_config=helper_config)
    client.upload_dir.mkdir(parents=True, exist_ok=True)
    return client


@pytest.fixture
def converter(helper_config):
    return FakeConverter(helper_config=helper_config)


@pytest.fixture
def mailer(helper_config):
    return FakeMail(helper_config=helper_config)


@pytest.fixture
def wired_app(helper_config, logger, storage, converter, mailer):
    app.state.logging = logger
    app.state.helper_config = helper_config
    app.state.storage_client = storage
    app.state.converter_client = converter
    app.state.mail_client = mailer
    app.state.intake_service = IntakeService(helper_config=helper_config, storage_client=storage)
    app.state.sign_service = SignService(
        helper_config=helper_config,
        storage_client=storage,
        converter_client=converter,
        mail_client=mailer,
    )
    return app


@pytest.fixture
def client(wired_app):
    # no context manager: the lifespan would build the real clients
    return TestClient(wired_app)


@pytest.fixture
def signature_image():
    return make_png_data_url()


@pytest.fixture
def uploaded_id(client):
    r = client.post(
        "/upload",
        files={"file": ("contract.docx", b"PK\x03\x04 not really a docx", "application/octet-stream")},
    )
    assert r.status_code == 200
    return r.json()["shareLink"].rsplit("/", 1)[-1]
