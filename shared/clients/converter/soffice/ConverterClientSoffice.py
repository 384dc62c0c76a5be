"""LibreOffice headless converter.

LibreOffice can only choose the output directory, not the file name, so the
conversion runs in a private temp directory and the result is moved onto the
target path afterwards.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path

from shared.clients.converter.ConverterClientInterface import ConverterClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import ConversionError


class ConverterClientSoffice(ConverterClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.binary = self.get_config_val("BINARY", default="") or shutil.which("soffice") or shutil.which("libreoffice")

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Soffice"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def do_healthcheck(self) -> bool:
        return bool(self.binary) and shutil.which(self.binary) is not None

    ##########################################
    ################ CORE ####################
    ##########################################

    async def _do_convert(self, source: Path, target: Path) -> None:
        if not self.binary:
            raise ConversionError("LibreOffice binary not found (set CONVERTER_SOFFICE_BINARY).")

        work_dir = Path(tempfile.mkdtemp(prefix="signrelay_soffice_"))
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                # own profile per run: with a shared one soffice hands the job to a running instance
                f"-env:UserInstallation={(work_dir / 'profile').as_uri()}",
                "--headless",
                "--convert-to",
                "pdf",
                "--outdir",
                str(work_dir),
                str(source),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
            if process.returncode != 0:
                raise ConversionError(
                    f"soffice exited with code {process.returncode}: {stderr.decode(errors='replace').strip()}"
                )

            generated = work_dir / f"{source.stem}.pdf"
            if not generated.exists():
                raise ConversionError(f"soffice did not produce {generated.name}")
            shutil.move(str(generated), str(target))
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
