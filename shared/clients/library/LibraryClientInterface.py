from abc import abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.library.models.Item import LibraryItem, WriteResponse


class LibraryClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(helper_config=helper_config, transport=transport)

        # cache
        self._cache_items: dict[str, LibraryItem] = {}

        # items saved while a transaction is open; None outside of a transaction
        self._pending_writes: list[LibraryItem] | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "library"
        """
        return "library"

    def has_direct_annotations(self) -> bool:
        """
        Whether the backend can list the annotations of an attachment directly.
        Backends without this capability expose annotations as children of the attachment.

        Returns:
            bool: True if do_fetch_annotations() is supported.
        """
        return False

    def in_transaction(self) -> bool:
        return self._pending_writes is not None

    def clear_cache(self) -> None:
        """
        Forgets all fetched items, so the next fetch reads current versions and tags from the backend.
        Called at the start of every run.
        """
        self._cache_items.clear()

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_item(self, item_id: str) -> str:
        """
        Returns the endpoint path for a single item.

        Args:
            item_id (str): The ID of the item.

        Returns:
            str: The endpoint path (e.g. "/users/123/items/ABCD1234")
        """
        pass

    @abstractmethod
    def _get_endpoint_children(self, item_id: str, start: int = 0, limit: int = 100) -> str:
        """
        Returns the endpoint path for listing the children of an item.

        Args:
            item_id (str): The ID of the parent item.
            start (int): Offset of the first child to return.
            limit (int): Number of children per page.

        Returns:
            str: The endpoint path (e.g. "/users/123/items/ABCD1234/children?start=0&limit=100")
        """
        pass

    @abstractmethod
    def _get_endpoint_items(self) -> str:
        """
        Returns the endpoint path for multi-item writes.

        Returns:
            str: The endpoint path (e.g. "/users/123/items")
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# GET REQUESTS ##############
    async def do_fetch_item(self, item_id: str) -> LibraryItem:
        """
        Fetches a single item from the library backend. Items already seen are served from the cache.

        Args:
            item_id (str): The ID of the item to fetch.

        Returns:
            LibraryItem: The fetched item.

        Raises:
            Exception: If the request fails or the response cannot be parsed.
        """
        if item_id in self._cache_items:
            return self._cache_items[item_id]
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_item(item_id), raise_on_error=True)
        item = self._parse_endpoint_item(resp.json())
        self._cache_items[item.id] = item
        return item

    async def do_fetch_selection(self, item_ids: list[str]) -> list[LibraryItem]:
        """
        Fetches the selected items. Items that cannot be fetched are logged and skipped.

        Args:
            item_ids (list[str]): IDs of the selected items, in selection order.

        Returns:
            list[LibraryItem]: The items that could be fetched, in selection order.
        """
        selection: list[LibraryItem] = []
        for item_id in item_ids:
            try:
                selection.append(await self.do_fetch_item(item_id))
            except Exception as e:
                self.logging.warning("Could not fetch selected item '%s' from %s: %s. Skipping.", item_id, self._get_engine_name(), e)
        return selection

    ############# LISTING REQUESTS ##############
    async def do_fetch_children(self, item: LibraryItem) -> list[LibraryItem | str]:
        """
        Fetches all children (attachments, notes, annotations) of an item.

        Args:
            item (LibraryItem): The parent item.

        Returns:
            list[LibraryItem | str]: The children. Backends that only return references return their IDs.

        Raises:
            Exception: If a request fails or a response cannot be parsed.
        """
        children: list[LibraryItem] = []
        start = 0
        page_size = 100
        while True:
            resp = await self.do_request(method="GET", endpoint=self._get_endpoint_children(item.id, start=start, limit=page_size), raise_on_error=True)
            page = [self._parse_endpoint_item(raw) for raw in resp.json()]
            for child in page:
                self._cache_items[child.id] = child
            children.extend(page)
            meta = self._parse_listing_meta(resp, start=start, page_length=len(page))
            self.logging.debug("Fetched %d of %s children of item '%s' from %s", len(children), meta["overall_count"], item.id, self._get_engine_name())
            if meta["next_start"] is None:
                break
            start = meta["next_start"]
        return children

    async def do_fetch_attachment_ids(self, item: LibraryItem) -> list[str]:
        """
        Returns the IDs of all attachments of a regular item.

        Args:
            item (LibraryItem): The regular (top-level) item.

        Returns:
            list[str]: The attachment IDs.
        """
        children = await self.do_fetch_children(item)
        return [child.id for child in children if isinstance(child, LibraryItem) and child.is_attachment()]

    async def do_fetch_annotations(self, attachment: LibraryItem) -> list[LibraryItem]:
        """
        Lists the annotations of an attachment directly. Only available if has_direct_annotations() is True.

        Raises:
            NotImplementedError: If the backend does not support direct annotation listing.
        """
        raise NotImplementedError(f"{self._get_engine_name()} does not support direct annotation listing.")

    ############# WRITE REQUESTS ##############
    async def do_save_item(self, item: LibraryItem) -> None:
        """
        Persists the item's tags. Inside a transaction the write is deferred until the transaction commits.

        Args:
            item (LibraryItem): The item to save.

        Raises:
            Exception: If the write fails.
        """
        if self._pending_writes is not None:
            self._pending_writes.append(item)
            return
        await self._do_write_items([item])

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Groups item saves into one write request. The write happens when the block exits without error;
        if the block raises, the pending saves are discarded and the error propagates.

        Raises:
            Exception: If a transaction is already open, or if the commit fails.
        """
        if self._pending_writes is not None:
            raise Exception("A transaction is already open.")
        self._pending_writes = []
        try:
            yield
            pending = self._pending_writes
            self._pending_writes = None
            if pending:
                await self._do_write_items(pending)
        finally:
            self._pending_writes = None

    async def _do_write_items(self, items: list[LibraryItem]) -> None:
        payload = [self._build_write_payload(item) for item in items]
        try:
            resp = await self.do_request(method="POST", endpoint=self._get_endpoint_items(), json=payload, raise_on_error=True)
            result = self._parse_endpoint_write(resp.json(), items)
        except Exception:
            self._forget(items)
            raise
        for item in items:
            if item.id in result.versions:
                item.version = result.versions[item.id]
        if result.failed:
            self._forget(items)
            details = "; ".join(f"{item_id}: {message}" for item_id, message in result.failed.items())
            raise Exception(f"Write to {self._get_engine_name()} failed for {len(result.failed)} item(s): {details}")
        self.logging.debug("Saved %d item(s) to %s", len(items), self._get_engine_name())

    def _forget(self, items: list[LibraryItem]) -> None:
        # the backend state of items from a failed write is unknown
        for item in items:
            self._cache_items.pop(item.id, None)

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_item(self, response: dict) -> LibraryItem:
        """
        Parses a single raw item from the backend.

        Args:
            response (dict): The raw item.

        Returns:
            LibraryItem: The parsed item.
        """
        pass

    @abstractmethod
    def _parse_listing_meta(self, response: httpx.Response, start: int, page_length: int) -> dict:
        """
        Parses pagination details of a listing response.

        Args:
            response (httpx.Response): The raw listing response.
            start (int): Offset that was requested.
            page_length (int): Number of results on this page.

        Returns:
            dict: "overall_count" (int | None) and "next_start" (int | None, None on the last page).
        """
        pass

    @abstractmethod
    def _build_write_payload(self, item: LibraryItem) -> dict:
        """
        Builds the write body for one item.

        Args:
            item (LibraryItem): The item to write.

        Returns:
            dict: The backend-specific payload.
        """
        pass

    @abstractmethod
    def _parse_endpoint_write(self, response: dict, items: list[LibraryItem]) -> WriteResponse:
        """
        Parses the response of a multi-item write.

        Args:
            response (dict): The raw response.
            items (list[LibraryItem]): The items in the order they were sent.

        Returns:
            WriteResponse: New versions and failures per item id.
        """
        pass
