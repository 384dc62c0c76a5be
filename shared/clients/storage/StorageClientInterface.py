from abc import abstractmethod
from pathlib import Path

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentRecord, DocumentState


class StorageClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # extensions that mark a stored file as a signable source document
        self.source_extensions = [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in helper_config.get_list_val("SIGN_SOURCE_EXTENSIONS", default=[".doc", ".docx"])
        ]

        # explicit lifecycle registry, keyed by file_id
        self._records: dict[str, DocumentRecord] = {}

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "storage"
        """
        return "storage"

    ##########################################
    ################ CORE ####################
    ##########################################

    @abstractmethod
    async def put(self, content: bytes, file_id: str, extension: str) -> DocumentRecord:
        """Persist uploaded bytes verbatim under ``<file_id><extension>``.

        Args:
            content (bytes): The raw uploaded file.
            file_id (str): The opaque identifier assigned at intake.
            extension (str): The original file extension including the dot, may be empty.

        Returns:
            DocumentRecord: The new record in state ``uploaded``.
        """
        pass

    @abstractmethod
    async def resolve(self, file_id: str) -> DocumentRecord | None:
        """Find the source document for an identifier.

        Args:
            file_id (str): The identifier from the locator.

        Returns:
            DocumentRecord | None: The record, or None if no source document exists.
        """
        pass

    @abstractmethod
    async def read_bytes(self, path: Path) -> bytes:
        """Read a stored file."""
        pass

    @abstractmethod
    async def write_bytes(self, path: Path, content: bytes) -> None:
        """Overwrite a stored file with new content."""
        pass

    ##########################################
    ################ STATE ###################
    ##########################################

    def set_state(self, record: DocumentRecord, state: DocumentState) -> DocumentRecord:
        """Move a record to a new lifecycle state and remember it.

        Args:
            record (DocumentRecord): The record to update.
            state (DocumentState): The new state.

        Returns:
            DocumentRecord: The updated record.
        """
        record.state = state
        self._records[record.file_id] = record
        self.logging.debug("Document %s is now %s", record.file_id, state.value)
        return record

    def get_record(self, file_id: str) -> DocumentRecord | None:
        """Return the tracked record for an identifier, if any."""
        return self._records.get(file_id)

    def is_source_extension(self, extension: str) -> bool:
        """Whether an extension (with dot) marks a signable source document."""
        return extension.lower() in self.source_extensions
