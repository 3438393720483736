from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager(ClientManager):
    """
    Manager class to handle the RAG (vector index) client based on configuration (RAG_ENGINE).
    """

    client_type = "rag"
    class_prefix = "RAGClient"
    base_class = RAGClientInterface

    def get_client(self) -> RAGClientInterface:
        """
        Returns:
            RAGClientInterface: The RAG client instance.
        """
        return self.client
