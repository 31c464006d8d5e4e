"""Tests for the Zotero Web API library client."""

import json

import httpx
import pytest

from shared.clients.library.AnnotationSource import ChildrenAnnotationSource, build_annotation_source
from shared.clients.library.models.Item import TAG_TYPE_AUTOMATIC, TAG_TYPE_MANUAL


def _raw_item(key: str, item_type: str, version: int = 1, **data) -> dict:
    return {"key": key, "version": version, "data": {"key": key, "itemType": item_type, "version": version, **data}}


class TestFetch:

    async def test_fetch_item(self, zotero_client_factory):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_raw_item(
                "ATT00001", "attachment", version=7,
                parentItem="ITEM0001", title="Full Text PDF", filename="paper.pdf", linkMode="imported_file",
                tags=[{"tag": "read"}, {"tag": "auto", "type": 1}],
            ))

        client = await zotero_client_factory(handler)
        item = await client.do_fetch_item("ATT00001")

        assert calls[0].url == "https://zotero.test/users/42/items/ATT00001"
        assert calls[0].headers["Zotero-API-Key"] == "zkey"
        assert calls[0].headers["Zotero-API-Version"] == "3"
        assert item.id == item.key == "ATT00001"
        assert item.is_attachment()
        assert item.parent_id == "ITEM0001"
        assert item.filename == "paper.pdf"
        assert item.version == 7
        assert [(tag.name, tag.type) for tag in item.tags] == [("read", TAG_TYPE_MANUAL), ("auto", TAG_TYPE_AUTOMATIC)]

    async def test_fetch_item_is_cached(self, zotero_client_factory):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_raw_item("ITEM0001", "book"))

        client = await zotero_client_factory(handler)
        await client.do_fetch_item("ITEM0001")
        await client.do_fetch_item("ITEM0001")

        assert len(calls) == 1

    async def test_fetch_item_error_raises(self, zotero_client_factory):
        client = await zotero_client_factory(lambda request: httpx.Response(404, text="Not found"))

        with pytest.raises(Exception):
            await client.do_fetch_item("GONE0001")

    async def test_selection_skips_unreadable_items(self, zotero_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("GONE0001"):
                return httpx.Response(404, text="Not found")
            return httpx.Response(200, json=_raw_item(request.url.path.rsplit("/", 1)[-1], "book"))

        client = await zotero_client_factory(handler)
        selection = await client.do_fetch_selection(["ITEM0001", "GONE0001", "ITEM0002"])

        assert [item.id for item in selection] == ["ITEM0001", "ITEM0002"]

    async def test_children_are_paginated(self, zotero_client_factory):
        children = [_raw_item(f"CHILD{i:03d}", "annotation", parentItem="ATT00001") for i in range(150)]
        starts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            start = int(request.url.params["start"])
            limit = int(request.url.params["limit"])
            starts.append(request.url.params["start"])
            return httpx.Response(200, json=children[start:start + limit], headers={"Total-Results": "150"})

        client = await zotero_client_factory(handler)
        parent = client._parse_endpoint_item(_raw_item("ATT00001", "attachment"))
        result = await client.do_fetch_children(parent)

        assert starts == ["0", "100"]
        assert len(result) == 150
        assert all(child.is_annotation() for child in result)

    async def test_attachment_ids(self, zotero_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[
                _raw_item("ATT00001", "attachment", parentItem="ITEM0001"),
                _raw_item("NOTE0001", "note", parentItem="ITEM0001"),
                _raw_item("ATT00002", "attachment", parentItem="ITEM0001"),
            ], headers={"Total-Results": "3"})

        client = await zotero_client_factory(handler)
        item = client._parse_endpoint_item(_raw_item("ITEM0001", "journalArticle"))

        assert await client.do_fetch_attachment_ids(item) == ["ATT00001", "ATT00002"]

    async def test_annotations_come_from_children(self, zotero_client_factory):
        client = await zotero_client_factory(lambda request: httpx.Response(200, json=[]))

        assert not client.has_direct_annotations()
        assert isinstance(build_annotation_source(client), ChildrenAnnotationSource)
        with pytest.raises(NotImplementedError):
            await client.do_fetch_annotations(client._parse_endpoint_item(_raw_item("ATT00001", "attachment")))

    async def test_group_library(self, zotero_client_factory, monkeypatch):
        monkeypatch.setenv("LIBRARY_ZOTERO_LIBRARY_TYPE", "groups")
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_raw_item("ITEM0001", "book"))

        client = await zotero_client_factory(handler)
        await client.do_fetch_item("ITEM0001")

        assert calls[0].url.path == "/groups/42/items/ITEM0001"

    async def test_invalid_library_type(self, zotero_client_factory, monkeypatch):
        monkeypatch.setenv("LIBRARY_ZOTERO_LIBRARY_TYPE", "teams")

        with pytest.raises(ValueError):
            await zotero_client_factory(lambda request: httpx.Response(200))


class TestWrite:

    async def test_transaction_writes_one_batch(self, zotero_client_factory):
        writes: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                writes.append(request)
                return httpx.Response(200, json={
                    "successful": {"0": {"key": "ATT00001", "version": 8}},
                    "unchanged": {"1": "ITEM0001"},
                    "failed": {},
                })
            key = request.url.path.rsplit("/", 1)[-1]
            item_type = "attachment" if key.startswith("ATT") else "journalArticle"
            return httpx.Response(200, json=_raw_item(key, item_type, version=5, tags=[{"tag": "auto", "type": 1}]))

        client = await zotero_client_factory(handler)
        att = await client.do_fetch_item("ATT00001")
        parent = await client.do_fetch_item("ITEM0001")

        async with client.transaction():
            for item in (att, parent):
                item.add_tag("2026-01-31 No matching keys found AMM")
                await client.do_save_item(item)
            assert client.in_transaction()
            assert writes == []

        assert not client.in_transaction()
        assert len(writes) == 1
        assert writes[0].url.path == "/users/42/items"
        assert json.loads(writes[0].content) == [
            {"key": "ATT00001", "version": 5, "tags": [{"tag": "auto", "type": 1}, {"tag": "2026-01-31 No matching keys found AMM"}]},
            {"key": "ITEM0001", "version": 5, "tags": [{"tag": "auto", "type": 1}, {"tag": "2026-01-31 No matching keys found AMM"}]},
        ]
        assert att.version == 8
        assert parent.version == 5

    async def test_failed_write_raises(self, zotero_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"successful": {}, "unchanged": {}, "failed": {"0": {"key": "ATT00001", "code": 412, "message": "Item has been modified"}}})

        client = await zotero_client_factory(handler)
        item = client._parse_endpoint_item(_raw_item("ATT00001", "attachment"))

        with pytest.raises(Exception, match="412"):
            async with client.transaction():
                await client.do_save_item(item)
        assert not client.in_transaction()

    async def test_error_in_block_discards_pending_saves(self, zotero_client_factory):
        writes: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            writes.append(request)
            return httpx.Response(200, json={"successful": {}})

        client = await zotero_client_factory(handler)
        item = client._parse_endpoint_item(_raw_item("ATT00001", "attachment"))

        with pytest.raises(RuntimeError):
            async with client.transaction():
                await client.do_save_item(item)
                raise RuntimeError("abort")

        assert writes == []
        assert not client.in_transaction()

    async def test_nested_transaction_raises(self, zotero_client_factory):
        client = await zotero_client_factory(lambda request: httpx.Response(200, json={}))

        with pytest.raises(Exception, match="already open"):
            async with client.transaction():
                async with client.transaction():
                    pass
        assert not client.in_transaction()

    async def test_save_outside_transaction_writes_immediately(self, zotero_client_factory):
        writes: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            writes.append(request)
            return httpx.Response(200, json={"successful": {"0": {"key": "ATT00001", "version": 2}}})

        client = await zotero_client_factory(handler)
        item = client._parse_endpoint_item(_raw_item("ATT00001", "attachment"))
        await client.do_save_item(item)

        assert len(writes) == 1
        assert item.version == 2


class TestCache:

    async def test_cleared_cache_reads_current_version(self, zotero_client_factory):
        versions = iter([5, 6])
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_raw_item("ATT00001", "attachment", version=next(versions)))

        client = await zotero_client_factory(handler)
        first = await client.do_fetch_item("ATT00001")
        client.clear_cache()
        second = await client.do_fetch_item("ATT00001")

        assert len(calls) == 2
        assert (first.version, second.version) == (5, 6)

    async def test_failed_write_evicts_items(self, zotero_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json=_raw_item("ATT00001", "attachment", version=6))

        client = await zotero_client_factory(handler)
        stale = await client.do_fetch_item("ATT00001")
        stale.add_tag("2026-01-01 failed run")

        with pytest.raises(Exception):
            await client.do_save_item(stale)
        fresh = await client.do_fetch_item("ATT00001")

        assert fresh is not stale
        assert fresh.tags == []
