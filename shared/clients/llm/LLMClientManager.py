from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager):
    """
    Manager class to handle the LLM (answer generator) client based on configuration (LLM_ENGINE).
    """

    client_type = "llm"
    class_prefix = "LLMClient"
    base_class = LLMClientInterface

    def get_client(self) -> LLMClientInterface:
        """
        Returns:
            LLMClientInterface: The LLM client instance.
        """
        return self.client
