import asyncio
from pathlib import Path

import httpx

from shared.clients.converter.ConverterClientInterface import ConverterClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import ConversionError


class ConverterClientGotenberg(ConverterClientInterface):
    """Converter backed by a Gotenberg server (LibreOffice route)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.base_url = self.get_config_val("URL")
        self._client: httpx.AsyncClient | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Gotenberg"

    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="URL", val_type="string")]

    def _get_endpoint_healthcheck(self) -> str:
        return "/health"

    def _get_endpoint_convert(self) -> str:
        return "/forms/libreoffice/convert"

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        """Initialise the HTTP client."""
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> bool:
        try:
            response = await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())
        except httpx.HTTPError as e:
            self.logging.warning("Gotenberg healthcheck failed: %s", e)
            return False
        return response.is_success

    ##########################################
    ################ CORE ####################
    ##########################################

    async def _do_convert(self, source: Path, target: Path) -> None:
        content = await asyncio.to_thread(source.read_bytes)
        files = {"files": (source.name, content, "application/octet-stream")}
        response = await self.do_request(method="POST", endpoint=self._get_endpoint_convert(), files=files)
        if not response.is_success:
            raise ConversionError(f"Gotenberg returned status {response.status_code}: {response.text[:200]}")
        await asyncio.to_thread(target.write_bytes, response.content)

    async def do_request(
        self,
        method: str = "GET",
        files: dict | None = None,
        endpoint: str = "",
    ) -> httpx.Response:
        """Send an HTTP request to the Gotenberg server.

        Args:
            method: HTTP method (GET, POST, ...).
            files: Multipart file upload.
            endpoint: Path to append to the base URL (leading slash optional).

        Returns:
            The raw httpx.Response.

        Raises:
            ConversionError: If the client is not initialised.
        """
        if self._client is None:
            raise ConversionError("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        kwargs: dict = {
            "url": f"{self.base_url.rstrip('/')}{endpoint}",
            "timeout": self.timeout,
        }
        if files is not None:
            kwargs["files"] = files

        return await self._client.request(method, **kwargs)
