from shared.clients.ClientManager import ClientManager
from shared.clients.inference.InferenceClientInterface import InferenceClientInterface


class InferenceClientManager(ClientManager):
    """Picks the inference engine from INFERENCE_ENGINE (default "huggingface")."""

    client_type = "inference"
    default_engine = "huggingface"

    def get_client(self) -> InferenceClientInterface:
        return self.client
