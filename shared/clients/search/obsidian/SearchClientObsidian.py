from typing import Any
from urllib.parse import quote

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.models.config import EnvConfig


class SearchClientObsidian(SearchClientInterface):
    """Search client for the Obsidian Local REST API plugin. One client per vault profile."""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Obsidian"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        # profiles are validated by the ProfileProvider
        return []

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._profile.token:
            return {"Authorization": f"Bearer {self._profile.token}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_endpoint_healthcheck(self) -> str:
        return "/"

    def _get_endpoint_search(self, query: str) -> str:
        # the simple search does not support boolean queries, so callers send one key per request
        return f"/search/simple/?query={quote(query, safe='')}"

    def _get_search_method(self) -> str:
        return "POST"

    def _get_search_headers(self) -> dict:
        return {"x-obsidian-vault": self._profile.name}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_search(self, response: Any) -> list[str]:
        if not isinstance(response, list):
            raise ValueError(f"expected a JSON array, got {type(response).__name__}")
        return [
            result["filename"]
            for result in response
            if isinstance(result, dict) and isinstance(result.get("filename"), str)
        ]
