from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base for every backend client (store, inference).

    Settings of a client live under ``<TYPE>_<ENGINE>_<KEY>``, e.g.
    ``STORE_POSTGRES_DATABASE_URL``; the shared timeout under ``<TYPE>_TIMEOUT``.
    All declared settings are checked on construction, so a misconfigured
    client never gets as far as boot().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Resolve every declared setting once.

        Raises:
            ValueError: Listing all settings that are missing or malformed.
        """
        problems: list[str] = []
        for config in self._get_required_config():
            try:
                self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)
            except ValueError as e:
                problems.append(str(e))
        if problems:
            raise ValueError(
                f"Invalid configuration for {self.get_client_type()} client '{self.get_engine_name()}': "
                + " ".join(problems)
            )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """Kind of backend, used as the first part of setting names. E.g. "store"."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Concrete backend behind the client, e.g. "Postgres". Must match the module directory."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings the engine reads, with their type and default (None = required)."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one engine setting.

        Args:
            raw_key (str): Setting name without prefix, e.g. "DATABASE_URL".
            default (Any): Value used when unset. None makes the setting required.
            val_type (str): "string", "number" or "bool".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for setting '{raw_key}'.")
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ##########################################
    ############ CORE LIFECYCLE ##############
    ##########################################

    @abstractmethod
    async def boot(self) -> None:
        """Acquire connections. Must be called before any other coroutine of the client."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections. Safe to call more than once."""
        pass

    @abstractmethod
    async def do_healthcheck(self) -> bool:
        """Return True if the backend answers. Never raises for an unreachable backend."""
        pass
