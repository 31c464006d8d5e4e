import httpx

from shared.clients.library.LibraryClientInterface import LibraryClientInterface
from shared.clients.library.models.Item import ItemTag, LibraryItem, TAG_TYPE_MANUAL, WriteResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LibraryClientZotero(LibraryClientInterface):
    """Library client for the Zotero Web API v3."""

    def __init__(self, helper_config: HelperConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(helper_config=helper_config, transport=transport)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.zotero.org", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._library_type = self.get_config_val("LIBRARY_TYPE", default="users", val_type="string").lower()
        self._library_id = self.get_config_val("LIBRARY_ID", default=None, val_type="string")
        if self._library_type not in ("users", "groups"):
            raise ValueError(f"Unsupported Zotero library type '{self._library_type}'. Expected 'users' or 'groups'.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Zotero"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.zotero.org"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="LIBRARY_TYPE", val_type="string", default="users"),
            EnvConfig(env_key="LIBRARY_ID", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        headers = {"Zotero-API-Version": "3"}
        if self._api_key:
            headers["Zotero-API-Key"] = self._api_key
        return headers

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/keys/current"

    def _get_library_prefix(self) -> str:
        return f"/{self._library_type}/{self._library_id}"

    def _get_endpoint_item(self, item_id: str) -> str:
        return f"{self._get_library_prefix()}/items/{item_id}"

    def _get_endpoint_children(self, item_id: str, start: int = 0, limit: int = 100) -> str:
        return f"{self._get_library_prefix()}/items/{item_id}/children?start={start}&limit={limit}"

    def _get_endpoint_items(self) -> str:
        return f"{self._get_library_prefix()}/items"

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_item(self, response: dict) -> LibraryItem:
        data = response.get("data") or {}
        key = response.get("key") or data.get("key")
        return LibraryItem(
                #base
                engine=self._get_engine_name(),
                id=key,
                key=key,
                item_type=data.get("itemType") or "",

                #details
                parent_id=data.get("parentItem") or None,
                title=data.get("title") or None,
                filename=data.get("filename") or None,
                url=data.get("url") or None,
                link_mode=data.get("linkMode") or None,
                version=response.get("version", data.get("version")),
                tags=[
                    ItemTag(name=tag["tag"], type=tag.get("type", TAG_TYPE_MANUAL))
                    for tag in data.get("tags", [])
                    if isinstance(tag, dict) and isinstance(tag.get("tag"), str)
                ],
            )

    def _parse_listing_meta(self, response: httpx.Response, start: int, page_length: int) -> dict:
        raw_total = response.headers.get("Total-Results", "")
        overall_count = int(raw_total) if raw_total.isdigit() else None
        next_start: int | None = start + page_length
        if not page_length or overall_count is None or next_start >= overall_count:
            next_start = None
        return {
            "overall_count": overall_count,
            "next_start": next_start,
        }

    def _build_write_payload(self, item: LibraryItem) -> dict:
        tags = []
        for tag in item.tags:
            # Zotero omits the type for manual tags
            tags.append({"tag": tag.name} if tag.type == TAG_TYPE_MANUAL else {"tag": tag.name, "type": tag.type})
        payload: dict = {"key": item.id, "tags": tags}
        if item.version is not None:
            payload["version"] = item.version
        return payload

    def _parse_endpoint_write(self, response: dict, items: list[LibraryItem]) -> WriteResponse:
        # results are keyed by the index of the object in the request body
        versions: dict[str, int] = {}
        failed: dict[str, str] = {}
        for index, raw in (response.get("successful") or {}).items():
            item = items[int(index)]
            version = raw.get("version") if isinstance(raw, dict) else None
            if version is not None:
                versions[item.id] = version
        for index in (response.get("unchanged") or {}):
            item = items[int(index)]
            if item.version is not None:
                versions[item.id] = item.version
        for index, raw in (response.get("failed") or {}).items():
            item = items[int(index)]
            failed[item.id] = f"{raw.get('code')} {raw.get('message')}" if isinstance(raw, dict) else str(raw)
        return WriteResponse(versions=versions, failed=failed)
