"""Key extraction.

Walks a selection of library items (annotations, attachments and regular items)
and collects the identifier keys of their annotations per attachment.
"""

import re

from shared.clients.library.AnnotationSource import AnnotationSource, build_annotation_source
from shared.clients.library.LibraryClientInterface import LibraryClientInterface
from shared.clients.library.models.Item import LibraryItem, LINK_MODE_LINKED_URL
from shared.helper.HelperConfig import HelperConfig
from services.annotation_crossref.models import Entry, EntryTable

KEY_PATTERN = re.compile(r"[A-Za-z0-9]{8}")
NO_FILENAME = "(no filename)"
WEB_LINK = "(web link)"


def is_valid_key(key: object) -> bool:
    """Structural check only: exactly 8 ASCII letters or digits."""
    return isinstance(key, str) and KEY_PATTERN.fullmatch(key) is not None


def resolve_label(attachment: LibraryItem | None) -> str:
    """Display label of an attachment.

    Web links (or any attachment with a URL but no local file) are labelled
    with their URL. Otherwise the filename, then the title, then a placeholder.
    """
    if attachment is None:
        return NO_FILENAME
    try:
        url = attachment.url or ""
        if attachment.link_mode == LINK_MODE_LINKED_URL or (url and not attachment.filename):
            return url or WEB_LINK
        return attachment.filename or attachment.title or NO_FILENAME
    except Exception:
        return NO_FILENAME


class KeyExtractor:
    """Builds the entry table for a selection."""

    def __init__(
        self,
        helper_config: HelperConfig,
        library_client: LibraryClientInterface,
        annotation_source: AnnotationSource | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._library = library_client
        self._annotations = annotation_source or build_annotation_source(library_client)

    ##########################################
    ############### EXTRACTION ###############
    ##########################################

    async def do_extract(self, selection: list[LibraryItem]) -> EntryTable:
        """Collect entries and keys from the selected items.

        Each item is handled on its own and the results are merged into one table.
        Lookup failures are recorded in ``EntryTable.errors`` and never raised.

        Args:
            selection (list[LibraryItem]): The selected items.

        Returns:
            EntryTable: The entries in first-seen order.
        """
        table = EntryTable()
        for item in selection:
            if item.is_annotation():
                await self._extract_annotation(item, table)
            elif item.is_attachment():
                await self._extract_attachment(item, table)
            else:
                await self._extract_regular_item(item, table)

        self.logging.info(
            "Extracted %d entr%s with %d distinct key(s) from %d selected item(s)",
            len(table), "y" if len(table) == 1 else "ies", len(table.key_universe()), len(selection),
        )
        return table

    async def _extract_annotation(self, annotation: LibraryItem, table: EntryTable) -> None:
        parent = await self._fetch_item(annotation.parent_id, table) if annotation.parent_id else None
        entry = table.ensure(parent, resolve_label)
        self._add_key(entry, annotation)

    async def _extract_attachment(self, attachment: LibraryItem, table: EntryTable) -> None:
        entry = table.ensure(attachment, resolve_label)
        for annotation in await self._fetch_annotations(attachment, table):
            self._add_key(entry, annotation)

    async def _extract_regular_item(self, item: LibraryItem, table: EntryTable) -> None:
        try:
            attachment_ids = await self._library.do_fetch_attachment_ids(item)
        except Exception as e:
            self._record_error(table, f"could not list attachments of item '{item.id}': {e}")
            return
        for attachment_id in attachment_ids:
            attachment = await self._fetch_item(attachment_id, table)
            if attachment is None or not attachment.is_attachment():
                continue
            await self._extract_attachment(attachment, table)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _add_key(self, entry: Entry, annotation: LibraryItem) -> None:
        if is_valid_key(annotation.key):
            entry.keys.add(annotation.key)
        else:
            self.logging.debug("Ignoring annotation '%s' with invalid key %r", annotation.id, annotation.key)

    async def _fetch_item(self, item_id: str, table: EntryTable) -> LibraryItem | None:
        try:
            return await self._library.do_fetch_item(item_id)
        except Exception as e:
            self._record_error(table, f"could not fetch item '{item_id}': {e}")
            return None

    async def _fetch_annotations(self, attachment: LibraryItem, table: EntryTable) -> list[LibraryItem]:
        try:
            return await self._annotations.do_fetch_annotations(attachment)
        except Exception as e:
            self._record_error(table, f"could not fetch annotations of attachment '{attachment.id}': {e}")
            return []

    def _record_error(self, table: EntryTable, message: str) -> None:
        self.logging.warning("Extraction: %s", message)
        table.errors.append(message)
