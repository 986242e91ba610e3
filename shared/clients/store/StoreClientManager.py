from shared.clients.ClientManager import ClientManager
from shared.clients.store.StoreClientInterface import StoreClientInterface


class StoreClientManager(ClientManager):
    """Picks the store engine from STORE_ENGINE ("postgres" or "memory")."""

    client_type = "store"
    default_engine = "postgres"

    def get_client(self) -> StoreClientInterface:
        return self.client
