import asyncio
import mimetypes
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path

from shared.clients.mail.MailClientInterface import MailClientInterface
from shared.clients.mail.models.MailResult import MailResult
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import DeliveryError


class MailClientSmtp(MailClientInterface):
    """SMTP transport with STARTTLS. Sender and recipient are both the configured mailbox unless overridden."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.address = self.get_config_val("ADDRESS")
        self.password = self.get_config_val("PASSWORD")
        self.recipient = self.get_config_val("RECIPIENT", default=self.address)
        self.host = self.get_config_val("HOST", default="smtp.gmail.com")
        self.port = int(self.get_config_val("PORT", default=587, val_type="number"))
        self.starttls = self.get_config_val("STARTTLS", default=True, val_type="bool")
        self.verify_tls = self.get_config_val("VERIFY_TLS", default=False, val_type="bool")

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Smtp"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="ADDRESS", val_type="string"),
            EnvConfig(env_key="PASSWORD", val_type="string"),
            EnvConfig(env_key="PORT", val_type="number", default=587),
        ]

    def get_sender(self) -> str:
        return self.address

    def get_recipient(self) -> str:
        return self.recipient

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def do_healthcheck(self) -> bool:
        # only checks the configuration; connecting here would need credentials on every boot
        return bool(self.host and self.address and self.password)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def send(self, attachment_path: Path, subject: str, body: str, attachment_name: str | None = None) -> MailResult:
        attachment_path = Path(attachment_path)
        message = self._build_message(attachment_path, subject, body, attachment_name or attachment_path.name)

        self.logging.info("Sending %s to %s via %s:%d", attachment_path.name, self.recipient, self.host, self.port)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            self.logging.error("SMTP delivery to %s failed: %s", self.recipient, e)
            raise DeliveryError(f"Mail delivery failed: {e}") from e

        return MailResult(
            message_id=message["Message-ID"],
            sender=self.address,
            recipients=[self.recipient],
            attachment=attachment_name or attachment_path.name,
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_message(self, attachment_path: Path, subject: str, body: str, attachment_name: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.address
        message["To"] = self.recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)

        mime_type, _ = mimetypes.guess_type(attachment_name)
        maintype, subtype = (mime_type or "application/octet-stream").split("/", 1)
        message.add_attachment(
            attachment_path.read_bytes(),
            maintype=maintype,
            subtype=subtype,
            filename=attachment_name,
        )
        return message

    def _tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            if self.starttls:
                smtp.starttls(context=self._tls_context())
                smtp.ehlo()
            smtp.login(self.address, self.password)
            smtp.send_message(message)
