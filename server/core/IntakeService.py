"""Intake service — stores an uploaded document under a fresh identifier."""

import uuid
from pathlib import PurePath

from server.models.responses import UploadResponse
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig

MESSAGE_RECEIVED = "File received"


class IntakeService:
    """Assigns identifiers to uploads and builds the locator for the signing step."""

    def __init__(
        self,
        helper_config: HelperConfig,
        storage_client: StorageClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._storage = storage_client
        self.share_base_url = helper_config.get_string_val("SIGN_SHARE_BASE_URL", default="http://localhost:3000")

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_intake(self, content: bytes, filename: str | None) -> UploadResponse:
        """Store the uploaded bytes verbatim and return the share link.

        Args:
            content (bytes): The uploaded file.
            filename (str | None): The client-side file name, only its extension is kept.

        Returns:
            UploadResponse: Confirmation message and the locator for POST /sign/{file_id}.
        """
        file_id = str(uuid.uuid4())
        extension = PurePath(filename or "").suffix
        record = await self._storage.put(content, file_id, extension)

        self.logging.info("Accepted upload %r as %s", filename, record.source_path.name, color="cyan")
        return UploadResponse(message=MESSAGE_RECEIVED, shareLink=self.build_share_link(record.file_id))

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def build_share_link(self, file_id: str) -> str:
        return f"{self.share_base_url.rstrip('/')}/sign/{file_id}"
