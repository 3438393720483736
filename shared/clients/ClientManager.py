import importlib

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Base manager that instantiates the client of one capability based on configuration.

    Reads <CLIENT_TYPE>_ENGINE (e.g. EMBED_ENGINE=ollama) and imports
    shared.clients.<client_type>.<engine>.<ClassPrefix><Engine>, e.g.
    shared.clients.embed.ollama.EmbedClientOllama.
    """

    client_type: str = ""
    class_prefix: str = ""
    base_class: type[ClientInterface] = ClientInterface

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the engine from ENV configuration.

        Returns:
            str: The name of the engine, capitalized (e.g. "Ollama").

        Raises:
            ValueError: If no engine is specified in the configuration.
        """
        env_key = f"{self.client_type.upper()}_ENGINE"
        engine = self.helper_config.get_string_val(env_key, default="")
        if not engine:
            raise ValueError(f"No {self.client_type} engine specified in configuration ({env_key}).")

        # lowercase all and uppercase first letter to match the class name
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Initializes the client based on the engine specified in the configuration.

        Returns:
            ClientInterface: An instance of the engine's client class.

        Raises:
            ValueError: If the engine is unknown or its class does not implement the expected interface.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        module_path = f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}"
        try:
            module = importlib.import_module(module_path)
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type} engine specified: '{engine}'. Error: {e}")
        if not issubclass(client_class, self.base_class):
            raise ValueError(f"Class '{class_name}' does not implement {self.base_class.__name__}.")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client

    def get_client(self) -> ClientInterface:
        """
        Returns the instantiated client.
        """
        return self.client
