import asyncio
from pathlib import Path

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import DocumentRecord, DocumentState


class StorageClientLocal(StorageClientInterface):
    """Document store backed by a single local directory.

    Sources are kept as ``<file_id><ext>`` and derived PDFs as ``<file_id>.pdf``
    side by side in STORAGE_LOCAL_UPLOAD_DIR.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        default_dir = str(helper_config.get_root_dir() / "uploads")
        self.upload_dir = Path(self.get_config_val("UPLOAD_DIR", default=default_dir)).expanduser().resolve()

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Local"

    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="UPLOAD_DIR", val_type="string", default="uploads")]

    def get_pdf_path(self, file_id: str) -> Path:
        return self.upload_dir / f"{file_id}.pdf"

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.logging.info("Document store ready at %s", self.upload_dir)

    async def do_healthcheck(self) -> bool:
        return self.upload_dir.is_dir()

    ##########################################
    ################ CORE ####################
    ##########################################

    async def put(self, content: bytes, file_id: str, extension: str) -> DocumentRecord:
        source_path = self.upload_dir / f"{file_id}{extension}"
        await asyncio.to_thread(source_path.write_bytes, content)
        record = DocumentRecord(
            file_id=file_id,
            extension=extension,
            source_path=source_path,
            pdf_path=self.get_pdf_path(file_id),
        )
        self.logging.info("Stored %d bytes as %s", len(content), source_path.name)
        return self.set_state(record, DocumentState.UPLOADED)

    async def resolve(self, file_id: str) -> DocumentRecord | None:
        record = self.get_record(file_id)
        if record is not None and self.is_source_extension(record.extension) and record.source_path.exists():
            return record

        # not tracked in this process (e.g. after a restart): rebuild from the directory
        source_path = await asyncio.to_thread(self._find_source, file_id)
        if source_path is None:
            return None
        pdf_path = self.get_pdf_path(file_id)
        record = DocumentRecord(
            file_id=file_id,
            extension=source_path.suffix,
            source_path=source_path,
            pdf_path=pdf_path,
        )
        state = DocumentState.CONVERTED if pdf_path.exists() else DocumentState.UPLOADED
        return self.set_state(record, state)

    async def read_bytes(self, path: Path) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)

    async def write_bytes(self, path: Path, content: bytes) -> None:
        await asyncio.to_thread(Path(path).write_bytes, content)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _find_source(self, file_id: str) -> Path | None:
        """Scan the upload directory for a source document named ``<file_id>.<source ext>``."""
        if not self.upload_dir.is_dir():
            return None
        for candidate in sorted(self.upload_dir.iterdir()):
            if candidate.is_file() and candidate.stem == file_id and self.is_source_extension(candidate.suffix):
                return candidate
        return None
