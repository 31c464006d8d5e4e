"""Backend-independent reference-library item model."""

from pydantic import BaseModel

ITEM_TYPE_ANNOTATION = "annotation"
ITEM_TYPE_ATTACHMENT = "attachment"
ITEM_TYPE_NOTE = "note"

LINK_MODE_LINKED_URL = "linked_url"

TAG_TYPE_MANUAL = 0
TAG_TYPE_AUTOMATIC = 1


class ItemTag(BaseModel):
    """
    A single tag attached to a library item.
    """
    name: str
    type: int = TAG_TYPE_MANUAL


class LibraryItem(BaseModel):
    """
    Represents a single library item (regular item, attachment, note or annotation), as returned by a library client.

    Attributes:
        engine (str): Identifier of the source library (e.g. "zotero").
        id (str): Stable identity of the item inside the library.
        key (str | None): Item key. For annotations this is the identifier key cross-referenced against the search service.
        item_type (str): Type discriminator, e.g. "annotation", "attachment", "journalArticle".
        parent_id (str | None): Identity of the parent item, if any.
        title (str | None): Display title.
        filename (str | None): Local filename of an attachment.
        url (str | None): URL of an attachment or item.
        link_mode (str | None): Attachment link mode, e.g. "imported_file" or "linked_url".
        version (int | None): Library version of the item, needed for writes.
        tags (list[ItemTag]): Tags currently on the item, including ones added but not yet saved.
    """
    engine: str
    id: str
    key: str | None = None
    item_type: str
    parent_id: str | None = None
    title: str | None = None
    filename: str | None = None
    url: str | None = None
    link_mode: str | None = None
    version: int | None = None
    tags: list[ItemTag] = []

    def is_annotation(self) -> bool:
        return self.item_type == ITEM_TYPE_ANNOTATION

    def is_attachment(self) -> bool:
        return self.item_type == ITEM_TYPE_ATTACHMENT

    def is_regular_item(self) -> bool:
        """Top-level bibliographic item, i.e. not an attachment, note or annotation."""
        return self.item_type not in (ITEM_TYPE_ANNOTATION, ITEM_TYPE_ATTACHMENT, ITEM_TYPE_NOTE)

    def add_tag(self, name: str, tag_type: int = TAG_TYPE_MANUAL) -> None:
        """Append a tag. Existing tags with the same name are kept."""
        self.tags.append(ItemTag(name=name, type=tag_type))


class WriteResponse(BaseModel):
    """
    Outcome of a multi-item write request.

    Attributes:
        versions (dict[str, int]): New version per successfully written (or unchanged) item id.
        failed (dict[str, str]): Error message per item id that could not be written.
    """
    versions: dict[str, int] = {}
    failed: dict[str, str] = {}
