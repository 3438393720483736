"""Environment-backed settings for the PDF chat service."""

import logging
import os
from typing import Any, Callable

from shared.helper.RetryPolicy import RetryPolicy

_BOOL_WORDS = {"true": True, "1": True, "yes": True, "on": True,
               "false": False, "0": False, "no": False, "off": False}


class HelperConfig:
    """Typed access to environment variables plus the shared logger.

    Lookups are case-insensitive and blank values count as unset. A getter
    called without a default treats its key as required. Values are read on
    every call; services take one snapshot at startup through
    PipelineConfig.from_helper_config.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _resolve(self, key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        name = key.upper()
        raw = (os.getenv(name) or "").strip()
        if not raw:
            if default is None:
                raise ValueError(f"Environment variable '{name}' is not set.")
            return default
        try:
            return parse(raw)
        except ValueError as e:
            raise ValueError(f"Environment variable '{name}' has an invalid value '{raw}': {e}") from e

    def get_string_val(self, key: str, default: str | None = None) -> str:
        return self._resolve(key, default, str)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Parse a number; values without a decimal point stay int.

        Raises:
            ValueError: If the key is unset without default, or not numeric.
        """
        return self._resolve(key, default, lambda raw: float(raw) if "." in raw else int(raw))

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Parse true/false, 1/0, yes/no or on/off, ignoring case.

        Raises:
            ValueError: If the key is unset without default, or not one of those words.
        """
        def parse(raw: str) -> bool:
            if raw.lower() not in _BOOL_WORDS:
                raise ValueError("expected true/false, 1/0, yes/no or on/off")
            return _BOOL_WORDS[raw.lower()]

        return self._resolve(key, default, parse)

    def get_retry_policy(self, prefix: str) -> RetryPolicy:
        """Retry settings of one stage from <PREFIX>_RETRY_ATTEMPTS, _RETRY_BACKOFF and _RETRY_MAX_BACKOFF.

        Without configuration a stage makes a single attempt.
        """
        prefix = prefix.upper()
        return RetryPolicy(
            attempts=int(self.get_number_val(f"{prefix}_RETRY_ATTEMPTS", default=1)),
            backoff_seconds=float(self.get_number_val(f"{prefix}_RETRY_BACKOFF", default=0.5)),
            max_backoff_seconds=float(self.get_number_val(f"{prefix}_RETRY_MAX_BACKOFF", default=8.0)),
        )

    def get_logger(self) -> logging.Logger:
        return self._logger
