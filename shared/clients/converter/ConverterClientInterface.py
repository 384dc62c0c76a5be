from abc import abstractmethod
from pathlib import Path

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ConversionError


class ConverterClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "converter"
        """
        return "converter"

    ##########################################
    ################ CORE ####################
    ##########################################

    async def convert(self, source: Path, target: Path) -> Path:
        """Convert a word-processing document into a PDF at *target*.

        Completes exactly once: either the PDF exists at *target* or a
        ConversionError is raised.

        Args:
            source (Path): The stored source document.
            target (Path): Where the PDF must be written (overwritten if present).

        Returns:
            Path: The target path.

        Raises:
            ConversionError: If the backend fails or produces no file.
        """
        source = Path(source)
        target = Path(target)
        if not source.is_file():
            raise ConversionError(f"Source document does not exist: {source}")

        self.logging.info("Converting %s to PDF with %s", source.name, self.get_engine_name())
        try:
            await self._do_convert(source, target)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"{self.get_engine_name()} conversion of {source.name} failed: {e}") from e

        if not target.is_file():
            raise ConversionError(f"{self.get_engine_name()} produced no PDF for {source.name}")
        self.logging.info("Converted %s -> %s", source.name, target.name)
        return target

    @abstractmethod
    async def _do_convert(self, source: Path, target: Path) -> None:
        """Backend-specific conversion; must leave the PDF at *target* or raise.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass
