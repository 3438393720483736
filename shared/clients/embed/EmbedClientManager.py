from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager):
    """
    Manager class to handle the Embed client based on configuration (EMBED_ENGINE).
    """

    client_type = "embed"
    class_prefix = "EmbedClient"
    base_class = EmbedClientInterface

    def get_client(self) -> EmbedClientInterface:
        """
        Returns:
            EmbedClientInterface: The Embed client instance.
        """
        return self.client
