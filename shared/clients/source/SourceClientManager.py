from shared.clients.ClientManager import ClientManager
from shared.clients.source.SourceClientInterface import SourceClientInterface


class SourceClientManager(ClientManager):
    """
    Manager class to handle the document source client based on configuration (SOURCE_ENGINE).
    """

    client_type = "source"
    class_prefix = "SourceClient"
    base_class = SourceClientInterface

    def get_client(self) -> SourceClientInterface:
        """
        Returns:
            SourceClientInterface: The source client instance.
        """
        return self.client
