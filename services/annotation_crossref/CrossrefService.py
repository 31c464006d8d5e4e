"""Cross-reference service.

Collects the annotation keys of the selected library items, looks each key up
in the search backend of the active profile, renders the report and tags the
library items with the outcome.
"""

from datetime import date, datetime

from pytz import timezone

from shared.clients.library.LibraryClientInterface import LibraryClientInterface
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from services.annotation_crossref.KeyExtractor import KeyExtractor
from services.annotation_crossref.ReportBuilder import ReportBuilder
from services.annotation_crossref.Tagger import Tagger
from services.annotation_crossref.models import CrossrefResult, EntryTable, Report


class CrossrefService:
    """Orchestrates extraction, resolution, reporting and tagging for one selection."""

    def __init__(
        self,
        helper_config: HelperConfig,
        library_client: LibraryClientInterface,
        search_client: SearchClientInterface,
        apply_tags: bool = True,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._library = library_client
        self._search = search_client
        self._apply_tags = apply_tags
        self._tz = timezone(helper_config.get_string_val("TIMEZONE", default="Europe/Berlin"))
        self._extractor = KeyExtractor(helper_config=helper_config, library_client=library_client)
        self._builder = ReportBuilder(helper_config=helper_config)
        self._tagger = Tagger(helper_config=helper_config, library_client=library_client)

    def get_today(self) -> date:
        return datetime.now(self._tz).date()

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_crossref(self, item_ids: list[str], today: date | None = None) -> str:
        """Run the cross-reference for a selection and return the report text.

        Args:
            item_ids (list[str]): IDs of the selected library items.
            today (date | None): Date for the report and tags. Defaults to today in the configured timezone.

        Returns:
            str: The report. Empty if nothing was selected.
        """
        result = await self.do_run(item_ids, today=today)
        return result.report

    async def do_run(self, item_ids: list[str], today: date | None = None) -> CrossrefResult:
        """Run the cross-reference for a selection.

        Failures while reading items, searching or tagging are logged and the run continues;
        a report is always produced.

        Args:
            item_ids (list[str]): IDs of the selected library items.
            today (date | None): Date for the report and tags. Defaults to today in the configured timezone.

        Returns:
            CrossrefResult: The report and run statistics.
        """
        profile = self._search.get_profile().name
        today = today or self.get_today()

        if not item_ids:
            self.logging.info("Empty selection. Nothing to cross-reference.")
            return CrossrefResult(profile=profile, report="")

        # items fetched in earlier runs may have changed in the library since
        self._library.clear_cache()

        try:
            selection = await self._library.do_fetch_selection(item_ids)
        except Exception as e:
            self.logging.exception("Reading the selection failed unexpectedly: %s", e)
            return CrossrefResult(profile=profile, report=self._builder.build([], {}, today, profile).text)
        if not selection:
            self.logging.warning("None of the %d selected item(s) could be read. Nothing to cross-reference.", len(item_ids))
            return CrossrefResult(profile=profile, report="")

        self.logging.info("Cross-referencing %d selected item(s) against profile '%s'...", len(selection), profile)

        table = EntryTable()
        failed_keys: list[str] = []
        try:
            table = await self._extractor.do_extract(selection)
            keys = table.key_universe()
            resolution = await self._search.do_resolve(keys)
            failed_keys = resolution.failed_keys
            report = self._builder.build(table.ordered(), resolution.matches, today, profile)
        except Exception as e:
            self.logging.exception("Cross-reference failed unexpectedly: %s", e)
            report = self._builder.build([], {}, today, profile)
            return CrossrefResult(profile=profile, report=report.text, entries=len(table), failed_keys=failed_keys, extraction_errors=len(table.errors))

        tagged_items, tagging_errors = await self._do_tag(table, report) if self._apply_tags else (0, 0)

        self.logging.info(
            "Cross-reference complete: %d entries (%d extraction errors), %d keys (%d failed), %d items tagged, %d tagging errors.",
            len(table), len(table.errors), len(keys), len(failed_keys), tagged_items, tagging_errors,
            color="green",
        )
        return CrossrefResult(
            profile=profile,
            report=report.text,
            entries=len(table),
            keys=len(keys),
            failed_keys=failed_keys,
            extraction_errors=len(table.errors),
            tagged_items=tagged_items,
            tagging_errors=tagging_errors,
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _do_tag(self, table: EntryTable, report: Report) -> tuple[int, int]:
        tagged_items = 0
        tagging_errors = 0
        for entry_id, tags in report.tags_by_entry.items():
            entry = table.get(entry_id)
            if entry is None:
                continue
            result = await self._tagger.do_apply_tags(entry, tags)
            if result.ok:
                tagged_items += result.value or 0
            else:
                tagging_errors += 1
        return tagged_items, tagging_errors
