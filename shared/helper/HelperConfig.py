"""Environment-backed settings for journal_insight.

Every setting is an environment variable. Unset and empty variables are the
same thing; a required setting without a default fails fast with ValueError
when the owning client is constructed.
"""

import logging
import os

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


class HelperConfig:
    """Reads typed settings from the environment and hands out the application logger."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str) -> tuple[str, str | None]:
        key = key.upper()
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return key, None
        return key, raw.strip()

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string setting, trimmed of surrounding whitespace.

        Raises:
            ValueError: If the variable is not set and there is no default.
        """
        key, raw = self._read(key)
        if raw is not None:
            return raw
        if default is None:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric setting. Values with a decimal point come back as float, others as int.

        Raises:
            ValueError: If the variable is not set and there is no default, or is not a number.
        """
        key, raw = self._read(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean setting (true/false, 1/0, yes/no, on/off).

        Raises:
            ValueError: If the variable is not set and there is no default, or is not a boolean.
        """
        key, raw = self._read(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        if raw.lower() in _TRUE_VALUES:
            return True
        if raw.lower() in _FALSE_VALUES:
            return False
        raise ValueError(f"Environment variable '{key}' is not a valid boolean: '{raw}'.")

    def get_logger(self) -> logging.Logger:
        return self._logger
