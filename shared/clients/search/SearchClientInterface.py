from abc import abstractmethod
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.search.models.Resolution import ResolutionResult
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import SearchProfile
from shared.models.result import StepResult


class SearchClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig, profile: SearchProfile, transport: httpx.AsyncBaseTransport | None = None):
        self._profile = profile
        super().__init__(helper_config=helper_config, transport=transport)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "search"
        """
        return "search"

    def get_profile(self) -> SearchProfile:
        """
        Returns the profile this client queries.

        Returns:
            SearchProfile: The active profile.
        """
        return self._profile

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._profile.base_url

    @abstractmethod
    def _get_endpoint_search(self, query: str) -> str:
        """
        Returns the endpoint path for a full-text search.

        Args:
            query (str): The raw (not yet url-encoded) search query.

        Returns:
            str: The endpoint path including the encoded query (e.g. "/search/simple/?query=ABCD1234")
        """
        pass

    def _get_search_method(self) -> str:
        return "GET"

    def _get_search_headers(self) -> dict:
        """
        Returns extra headers sent with every search request.
        """
        return {}

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_search(self, query: str) -> StepResult[list[str]]:
        """
        Runs one full-text search and returns the names of the matching documents.

        Args:
            query (str): The search query, e.g. one identifier key.

        Returns:
            StepResult[list[str]]: The matching document names. A failed request, a non-2xx status or a
            malformed body yields a failed result with an empty list.
        """
        try:
            resp = await self.do_request(
                method=self._get_search_method(),
                endpoint=self._get_endpoint_search(query),
                additional_headers=self._get_search_headers(),
            )
        except Exception as e:
            return StepResult.failure(f"search request failed: {e!r}", value=[])

        if not resp.is_success:
            return StepResult.failure(f"search returned status {resp.status_code}", value=[])

        try:
            names = self._parse_endpoint_search(resp.json())
        except ValueError as e:
            return StepResult.failure(f"malformed search response: {e}", value=[])
        return StepResult.success(names)

    async def do_resolve(self, keys: set[str]) -> ResolutionResult:
        """
        Resolves each key to the documents that mention it, one query per key.

        Keys are queried sequentially in sorted order, exactly once each. A failing query
        resolves its key to no documents and never aborts the remaining keys.

        Args:
            keys (set[str]): The distinct keys to resolve.

        Returns:
            ResolutionResult: Matches per key and the keys whose query failed.
        """
        result = ResolutionResult()
        for key in sorted(keys):
            search = await self.do_search(key)
            result.matches[key] = list(search.value or [])
            if not search.ok:
                result.failed_keys.append(key)
                self.logging.warning("Search for key '%s' in %s profile '%s' failed: %s", key, self._get_engine_name(), self._profile.name, search.error)
            else:
                self.logging.debug("Key '%s' matched %d document(s) in profile '%s'", key, len(result.matches[key]), self._profile.name)
        self.logging.info("Resolved %d key(s) against profile '%s' (%d failed)", len(keys), self._profile.name, len(result.failed_keys))
        return result

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_search(self, response: Any) -> list[str]:
        """
        Extracts the document names from a decoded search response.

        Args:
            response (Any): The decoded JSON body.

        Returns:
            list[str]: Document names in response order.

        Raises:
            ValueError: If the response does not have the expected shape.
        """
        pass
