"""Sign service — the sign-and-deliver pipeline.

resolve → convert → stamp → persist → email, strictly in that order and
without retries. A failing step raises and leaves earlier side effects
(converted or overwritten PDF) on disk.
"""

import asyncio

from server.models.responses import SignResponse
from shared.clients.converter.ConverterClientInterface import ConverterClientInterface
from shared.clients.mail.MailClientInterface import MailClientInterface
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentState
from shared.models.errors import DocumentNotFoundError
from shared.pdf.PdfStamper import PdfStamper


class SignService:
    """Orchestrates conversion, overlay, persistence and delivery for one document."""

    def __init__(
        self,
        helper_config: HelperConfig,
        storage_client: StorageClientInterface,
        converter_client: ConverterClientInterface,
        mail_client: MailClientInterface,
        stamper: PdfStamper | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._storage = storage_client
        self._converter = converter_client
        self._mail = mail_client
        self._stamper = stamper or PdfStamper(helper_config=helper_config)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_sign(self, file_id: str, signer_name: str, signature_image: str) -> SignResponse:
        """Sign a stored document and mail it to the configured recipient.

        Args:
            file_id (str): Identifier from the share link.
            signer_name (str): Display name of the signer (non-empty).
            signature_image (str): Base64 PNG, optionally as a data URL.

        Returns:
            SignResponse: Success message naming the signer.

        Raises:
            DocumentNotFoundError: No source document for file_id.
            ConversionError: The converter failed; nothing is mailed.
            OverlayError: The PDF, font or signature image could not be composed.
            DeliveryError: The mail transport failed; the signed PDF stays on disk.
        """
        # 1) resolution
        record = await self._storage.resolve(file_id)
        if record is None:
            raise DocumentNotFoundError(file_id)
        self.logging.info("Signing %s for %r", record.source_path.name, signer_name)

        # 2) conversion
        await self._converter.convert(record.source_path, record.pdf_path)
        self._storage.set_state(record, DocumentState.CONVERTED)

        # 3) overlay composition
        pdf_bytes = await self._storage.read_bytes(record.pdf_path)
        image_bytes = self._stamper.decode_signature_image(signature_image)
        signed_bytes = await asyncio.to_thread(self._stamper.stamp, pdf_bytes, signer_name, image_bytes)

        # 4) persistence
        await self._storage.write_bytes(record.pdf_path, signed_bytes)
        self._storage.set_state(record, DocumentState.SIGNED)

        # 5) delivery
        result = await self._mail.send(
            record.pdf_path,
            subject=f"Document signed by: {signer_name}",
            body=f"The document was signed by {signer_name}. See attached file.",
            attachment_name=f"{record.file_id}.pdf",
        )
        self.logging.info("Signed %s mailed to %s", record.pdf_path.name, ", ".join(result.recipients), color="green")

        return SignResponse(message=f"The document was signed and sent successfully by {signer_name}")
