from shared.helper.HelperConfig import HelperConfig
from shared.clients.converter.ConverterClientInterface import ConverterClientInterface


class ConverterClientManager:
    """Manager class to instantiate the configured converter client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the converter engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Soffice").
        """
        engine = self.helper_config.get_string_val("CONVERTER_ENGINE", default="soffice")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ConverterClientInterface:
        """Instantiate the converter client for the configured engine.

        Returns:
            ConverterClientInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"ConverterClient{engine}"
        try:
            module = __import__(
                f"shared.clients.converter.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
            client = client_class(helper_config=self.helper_config)
            self.logging.debug("Instantiated converter client for engine: %s", engine)
            return client
        except (ImportError, AttributeError) as e:
            raise ValueError("Unsupported converter engine '%s'. Error: %s" % (engine, e))

    def get_client(self) -> ConverterClientInterface:
        """Return the instantiated converter client."""
        return self.client
