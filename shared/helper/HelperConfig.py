import logging
import os
from typing import Any


class HelperConfig:
    """
    Reads settings from environment variables and hands out the application logger.

    Keys are case-insensitive. An unset or empty variable falls back to the default;
    without a default the setting is required and a ValueError is raised.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str, default: Any) -> tuple[str, str | None]:
        key = key.upper()
        raw = (os.getenv(key) or "").strip() or None
        if raw is None and default is None:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return key, raw

    def get_string_val(self, key: str, default: str | None = None) -> str:
        _, raw = self._read(key, default)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """
        Returns an int, or a float if the value contains a decimal point.

        Raises:
            ValueError: If the value is not a number.
        """
        key, raw = self._read(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """
        "true", "1" and "yes" (any case) are True, everything else is False.
        """
        _, raw = self._read(key, default)
        if raw is None:
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """
        Reads a bracketed list such as "[AMM,Sleep,Anki]".

        Elements are stripped, empty elements dropped, and each is cast to element_type.
        "[]" yields an empty list.

        Raises:
            ValueError: If the value is not wrapped in brackets or an element cannot be cast.
        """
        key, raw = self._read(key, default)
        if raw is None:
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key}' must look like '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")
        elements = [elem.strip() for elem in raw[1:-1].split(separator) if elem.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key}' has an element that is not a {element_type.__name__}: {e}. Got: '{raw}'")

    def get_logger(self) -> logging.Logger:
        return self._logger
