"""Writes provenance tags back onto the library items of an entry."""

from shared.clients.library.LibraryClientInterface import LibraryClientInterface
from shared.clients.library.models.Item import LibraryItem, TAG_TYPE_MANUAL
from shared.helper.HelperConfig import HelperConfig
from shared.models.result import StepResult
from services.annotation_crossref.models import Entry


class Tagger:
    """Applies generated tags to an entry's attachment and its regular parent item."""

    def __init__(self, helper_config: HelperConfig, library_client: LibraryClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._library = library_client

    async def do_apply_tags(self, entry: Entry, tags: list[str]) -> StepResult[int]:
        """Add every tag to every target item of the entry and save them in one transaction.

        Tags are appended as manual tags without checking for existing ones, so repeated
        runs add the same tag again.

        Args:
            entry (Entry): The entry whose items are tagged.
            tags (list[str]): The tags generated for the entry.

        Returns:
            StepResult[int]: Number of saved items. A failed transaction yields a failed result and leaves
            the tags of the items as they were; nothing is raised.
        """
        if not tags:
            return StepResult.success(0)

        targets = await self._collect_targets(entry)
        if not targets:
            self.logging.debug("Entry '%s' has no library item to tag.", entry.id)
            return StepResult.success(0)

        # targets can be shared with later entries (a common parent); a failed commit rolls their tags back
        previous_tags = [list(item.tags) for item in targets]
        try:
            async with self._library.transaction():
                for item in targets:
                    for tag in tags:
                        item.add_tag(tag, TAG_TYPE_MANUAL)
                    await self._library.do_save_item(item)
        except Exception as e:
            for item, tags_before in zip(targets, previous_tags):
                item.tags = tags_before
            self.logging.error("Tagging failed for entry '%s' (%s): %s", entry.id, entry.label, e)
            return StepResult.failure(str(e), value=0)

        self.logging.info("Tagged %d item(s) of entry '%s' with %d tag(s)", len(targets), entry.label, len(tags))
        return StepResult.success(len(targets))

    async def _collect_targets(self, entry: Entry) -> list[LibraryItem]:
        attachment = entry.attachment
        if attachment is None:
            return []
        targets = [attachment]
        if attachment.parent_id:
            try:
                parent = await self._library.do_fetch_item(attachment.parent_id)
            except Exception as e:
                self.logging.warning("Could not fetch parent '%s' of attachment '%s': %s", attachment.parent_id, attachment.id, e)
                return targets
            if parent.is_regular_item():
                targets.append(parent)
        return targets
