"""Tests for writing provenance tags back onto library items."""

from fakes import FakeLibraryClient, attachment, make_item, regular
from services.annotation_crossref.Tagger import Tagger
from services.annotation_crossref.models import Entry
from shared.clients.library.models.Item import TAG_TYPE_MANUAL

TAG = '2026-01-31 1 matching key found in "note.md" in AMM'


def _entry(library: FakeLibraryClient, attachment_id: str) -> Entry:
    return Entry(id=attachment_id, label="paper.pdf", keys={"ABCD1234"}, attachment=library.items[attachment_id])


class TestTagger:

    async def test_tags_attachment_and_regular_parent(self, helper_config):
        library = FakeLibraryClient([regular("ITEM0001"), attachment("ATT00001", parent_id="ITEM0001")])

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert result.ok
        assert result.value == 2
        assert library.tag_names("ATT00001") == [TAG]
        assert library.tag_names("ITEM0001") == [TAG]
        assert library.items["ATT00001"].tags[0].type == TAG_TYPE_MANUAL
        # both items go out in a single write
        assert library.saved == [["ATT00001", "ITEM0001"]]

    async def test_standalone_attachment(self, helper_config):
        library = FakeLibraryClient([attachment("ATT00001")])

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG, "second tag"])

        assert result.value == 1
        assert library.tag_names("ATT00001") == [TAG, "second tag"]

    async def test_non_regular_parent_is_not_tagged(self, helper_config):
        library = FakeLibraryClient([
            make_item("NOTE0001", "note"),
            attachment("ATT00001", parent_id="NOTE0001"),
        ])

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert result.value == 1
        assert library.tag_names("NOTE0001") == []

    async def test_unreadable_parent_is_skipped(self, helper_config):
        library = FakeLibraryClient([regular("ITEM0001"), attachment("ATT00001", parent_id="ITEM0001")])
        library.fetch_failures.add("ITEM0001")

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert result.ok
        assert result.value == 1
        assert library.saved == [["ATT00001"]]

    async def test_repeated_runs_append_duplicates(self, helper_config):
        library = FakeLibraryClient([attachment("ATT00001")])
        tagger = Tagger(helper_config, library)

        await tagger.do_apply_tags(_entry(library, "ATT00001"), [TAG])
        await tagger.do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert library.tag_names("ATT00001") == [TAG, TAG]

    async def test_save_failure_yields_failed_result(self, helper_config):
        library = FakeLibraryClient([regular("ITEM0001"), attachment("ATT00001", parent_id="ITEM0001")])
        library.save_failures.add("ITEM0001")

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert not result.ok
        assert result.value == 0
        assert "ITEM0001" in result.error
        assert library.saved == []

    async def test_placeholder_entry_is_not_tagged(self, helper_config):
        library = FakeLibraryClient([])
        entry = Entry(id="missing:abcd", label="(no filename)", keys={"ABCD1234"})

        result = await Tagger(helper_config, library).do_apply_tags(entry, [TAG])

        assert result.ok
        assert result.value == 0
        assert library.saved == []

    async def test_no_tags_no_write(self, helper_config):
        library = FakeLibraryClient([attachment("ATT00001")])

        result = await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [])

        assert result.value == 0
        assert library.saved == []

    async def test_failed_entry_leaves_shared_parent_untouched(self, helper_config):
        library = FakeLibraryClient([
            regular("PARENT01"),
            attachment("ATTACH01", parent_id="PARENT01", filename="a.pdf"),
            attachment("ATTACH02", parent_id="PARENT01", filename="b.pdf"),
        ])
        library.save_failures.add("ATTACH01")
        tagger = Tagger(helper_config, library)

        failed = await tagger.do_apply_tags(_entry(library, "ATTACH01"), ["2026-01-31 No annotation keys found in AMM"])
        saved = await tagger.do_apply_tags(_entry(library, "ATTACH02"), ["2026-01-31 No matching keys found AMM"])

        assert not failed.ok
        assert saved.value == 2
        assert library.saved == [["ATTACH02", "PARENT01"]]
        assert library.persisted["PARENT01"] == ["2026-01-31 No matching keys found AMM"]
        assert library.tag_names("ATTACH01") == []

    async def test_failed_commit_restores_existing_tags(self, helper_config):
        library = FakeLibraryClient([attachment("ATT00001")])
        library.items["ATT00001"].add_tag("read")
        library.save_failures.add("ATT00001")

        await Tagger(helper_config, library).do_apply_tags(_entry(library, "ATT00001"), [TAG])

        assert library.tag_names("ATT00001") == ["read"]
