"""Annotation cross-reference entry point.

Looks up the annotation keys of the given Zotero items in an Obsidian vault,
prints the report and tags the Zotero items with the outcome.

Usage:
    python -m services.annotation_crossref.annotation_crossref ITEM_KEY [ITEM_KEY ...] [--profile NAME] [--tags|--no-tags]
"""

import asyncio

import click

from shared.clients.library.LibraryClientManager import LibraryClientManager
from shared.clients.search.SearchClientManager import SearchClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from services.annotation_crossref.CrossrefService import CrossrefService


async def main(item_ids: list[str], profile: str | None = None, apply_tags: bool = True) -> str:
    """Run the cross-reference for the given items.

    Args:
        item_ids (list[str]): Keys of the selected library items.
        profile (str | None): Search profile override. Unknown names fall back to the default profile.
        apply_tags (bool): Write provenance tags back onto the library items.

    Returns:
        str: The report text.
    """
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    library_client = LibraryClientManager(helper_config=config).get_client()
    search_client = SearchClientManager(helper_config=config).get_client(profile_override=profile)

    async with library_client, search_client:
        # an unreachable search backend is not fatal: every key then resolves to no matches
        await search_client.do_healthcheck()

        service = CrossrefService(
            helper_config=config,
            library_client=library_client,
            search_client=search_client,
            apply_tags=apply_tags,
        )
        return await service.do_crossref(item_ids)


@click.command()
@click.argument("item_ids", nargs=-1)
@click.option("--profile", default=None, envvar="SEARCH_PROFILE", help="Search profile (vault) to query.")
@click.option("--tags/--no-tags", "apply_tags", default=True, help="Write provenance tags onto the library items.")
def cli(item_ids: tuple[str, ...], profile: str | None, apply_tags: bool) -> None:
    """Cross-reference the annotation keys of ITEM_IDS against the search backend."""
    report = asyncio.run(main(list(item_ids), profile=profile, apply_tags=apply_tags))
    click.echo(report)


if __name__ == "__main__":
    cli()
