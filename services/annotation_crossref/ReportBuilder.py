"""Report builder.

Renders the entries of a run and their resolved keys as a plain-text report:

    "Zotero filename": "paper.pdf"
    	"Obsidian filename": "note.md"
    		  ABCD1234
    		  2026-01-31 1 matching key found in "note.md" in AMM

and generates the provenance tags written back onto the library items.
"""

from datetime import date

from shared.helper.HelperConfig import HelperConfig
from services.annotation_crossref.models import Entry, Report

NO_FILENAME = "(no filename)"
NO_KEYS_LINE = "No annotation keys found."
NO_MATCHES_LINE = "No matching keys found."


def no_keys_tag(ymd: str, profile_name: str) -> str:
    return f"{ymd} No annotation keys found in {profile_name}"


def no_matches_tag(ymd: str, profile_name: str) -> str:
    return f"{ymd} No matching keys found {profile_name}"


def matches_tag(ymd: str, count: int, document: str, profile_name: str) -> str:
    return f'{ymd} {count} matching key{"" if count == 1 else "s"} found in "{document}" in {profile_name}'


def group_by_document(keys: set[str], resolution: dict[str, list[str]]) -> dict[str, set[str]]:
    """Invert an entry's keys through the resolution map into document -> keys."""
    groups: dict[str, set[str]] = {}
    for key in sorted(keys):
        for document in resolution.get(key, []):
            groups.setdefault(document, set()).add(key)
    return groups


class ReportBuilder:
    """Folds entries and the resolution map into the report text and per-entry tags."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.source_name = helper_config.get_string_val("REPORT_SOURCE_NAME", default="Zotero")
        self.target_name = helper_config.get_string_val("REPORT_TARGET_NAME", default="Obsidian")

    def build(self, entries: list[Entry], resolution: dict[str, list[str]], today: date, profile_name: str) -> Report:
        """Render the report.

        Entries are ordered by label (case-insensitive, ties keep their order), document
        groups by name (case-insensitive) and keys by code point. The output only depends
        on the arguments.

        Args:
            entries (list[Entry]): The entries of the run, in first-seen order.
            resolution (dict[str, list[str]]): Matched document names per key.
            today (date): Date written into status lines and tags.
            profile_name (str): Search profile written into status lines and tags.

        Returns:
            Report: The report text and the tags per entry id, both in report order.
        """
        ymd = today.isoformat()
        blocks: list[str] = []
        tags_by_entry: dict[str, list[str]] = {}

        for entry in sorted(entries, key=lambda e: e.label.casefold()):
            lines, tags = self._build_block(entry, resolution, ymd, profile_name)
            blocks.append("\n".join(lines))
            tags_by_entry[entry.id] = tags

        text = "\n\n".join(blocks)
        if not text:
            text = f"{NO_KEYS_LINE}\n{no_keys_tag(ymd, profile_name)}"
        return Report(text=text, tags_by_entry=tags_by_entry)

    def _build_block(self, entry: Entry, resolution: dict[str, list[str]], ymd: str, profile_name: str) -> tuple[list[str], list[str]]:
        lines = [f'"{self.source_name} filename": "{entry.label or NO_FILENAME}"']

        if not entry.keys:
            tag = no_keys_tag(ymd, profile_name)
            return lines + [NO_KEYS_LINE, tag], [tag]

        groups = group_by_document(entry.keys, resolution)
        if not groups:
            # the report line keeps the "in" that the tag has always lacked
            return lines + [NO_MATCHES_LINE, f"{ymd} No matching keys found in {profile_name}"], [no_matches_tag(ymd, profile_name)]

        tags: list[str] = []
        for document in sorted(groups, key=str.casefold):
            keys = sorted(groups[document])
            tag = matches_tag(ymd, len(keys), document, profile_name)
            lines.append(f'\t"{self.target_name} filename": "{document}"')
            lines.extend(f"\t\t  {key}" for key in keys)
            lines.append(f"\t\t  {tag}")
            tags.append(tag)
        return lines, tags
