from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """
    Base class of all HTTP backends (library, search).

    Subclasses name their type and engine, which also namespaces their configuration
    (e.g. "LIBRARY_ZOTERO_API_KEY"), and provide base URL, auth header and endpoints.
    The HTTP connection exists between boot() and close(); the client can also be used
    as an async context manager.
    """

    def __init__(self, helper_config: HelperConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        # connection, created on boot()
        self._client: httpx.AsyncClient | None = None
        self._transport = transport
        self.validate_full_configuration()

    async def __aenter__(self) -> "ClientInterface":
        await self.boot()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every required configuration key once so that missing values fail at construction.

        Raises:
            ValueError: If a required value is missing or cannot be parsed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client, e.g. "library" or "search".
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the display name of the backend, e.g. "Zotero" or "Obsidian".
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the configuration keys the client needs, without the type/engine prefix.

        Returns:
            list[EnvConfig]: The keys with their value type and default.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads a configuration value of this client.

        Args:
            raw_key (str): Key without prefix, e.g. "API_KEY" for "LIBRARY_ZOTERO_API_KEY".
            default (Any): Value used if the key is not set. None makes the key required.
            val_type (str): One of "string", "number", "bool", "list".

        Raises:
            ValueError: If the key is required but not set, or val_type is unknown.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for key '{raw_key}' of {self.get_client_type()} client '{self.get_engine_name()}'.")
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers that authenticate every request. Empty if no credentials are configured.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL of the backend, e.g. "https://api.zotero.org".
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns a cheap endpoint that answers 2xx when the backend is reachable and the credentials work.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> bool:
        """
        Checks whether the backend is reachable. Failures are logged, never raised.

        Returns:
            bool: True if the healthcheck endpoint answered with a 2xx status.
        """
        try:
            resp = await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())
        except Exception as e:
            self.logging.warning("%s client '%s' is not reachable: %s", self.get_client_type().capitalize(), self._get_engine_name(), e)
            return False
        if not resp.is_success:
            self.logging.warning("%s client '%s' answered the healthcheck with status %d.", self.get_client_type().capitalize(), self._get_engine_name(), resp.status_code)
            return False
        return True

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self) -> None:
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Sends a request to the backend.

        Args:
            method: HTTP method.
            endpoint: Path below the base URL, may carry a query string.
            json: JSON body.
            params: Additional query parameters.
            additional_headers: Headers added to (and overriding) the auth header.
            raise_on_error: Raise on a non-2xx status instead of returning the response.

        Returns:
            The raw httpx.Response.

        Raises:
            Exception: If the client is not booted, the transport fails, or (with raise_on_error) the status is not 2xx.
        """
        if self._client is None:
            raise Exception(f"{self._get_engine_name()} client is not booted. Call boot() before making requests.")

        endpoint = endpoint.strip()
        url = self._get_base_url().rstrip("/") + ("/" + endpoint.lstrip("/") if endpoint else "")
        headers = {**self._get_auth_header(), **(additional_headers or {})}

        response = await self._client.request(method, url, headers=headers, json=json, params=params, timeout=self.timeout)

        if raise_on_error and not response.is_success:
            self.logging.error("%s %s failed with status %d: %s", method, url, response.status_code, response.text)
            raise Exception(f"{method} {url} failed with status {response.status_code}")

        return response
