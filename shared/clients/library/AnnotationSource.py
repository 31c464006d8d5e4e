"""Annotation retrieval adapters.

Library backends expose the annotations of an attachment in one of two ways:
either they list them directly, or they list all children of the attachment and
the annotations have to be filtered out. The adapter is chosen once per client.
"""

from abc import ABC, abstractmethod

from shared.clients.library.LibraryClientInterface import LibraryClientInterface
from shared.clients.library.models.Item import LibraryItem


class AnnotationSource(ABC):
    def __init__(self, library_client: LibraryClientInterface):
        self._library = library_client

    @abstractmethod
    async def do_fetch_annotations(self, attachment: LibraryItem) -> list[LibraryItem]:
        """
        Returns the annotations of an attachment.

        Args:
            attachment (LibraryItem): The attachment.

        Returns:
            list[LibraryItem]: Its annotations.

        Raises:
            Exception: If the backend call fails.
        """
        pass


class DirectAnnotationSource(AnnotationSource):
    """For backends that list annotations of an attachment directly."""

    async def do_fetch_annotations(self, attachment: LibraryItem) -> list[LibraryItem]:
        return list(await self._library.do_fetch_annotations(attachment))


class ChildrenAnnotationSource(AnnotationSource):
    """For backends that only list children; ID references are resolved to items first."""

    async def do_fetch_annotations(self, attachment: LibraryItem) -> list[LibraryItem]:
        children: list[LibraryItem] = []
        for child in await self._library.do_fetch_children(attachment):
            if isinstance(child, LibraryItem):
                children.append(child)
            elif child is not None:
                children.append(await self._library.do_fetch_item(str(child)))
        return [child for child in children if child.is_annotation()]


def build_annotation_source(library_client: LibraryClientInterface) -> AnnotationSource:
    """Pick the annotation adapter matching the capabilities of the library client."""
    if library_client.has_direct_annotations():
        return DirectAnnotationSource(library_client)
    return ChildrenAnnotationSource(library_client)
