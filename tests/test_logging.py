"""Tests for the logging setup."""

import logging

from shared.logging.logging_setup import ColorLogger, ColoredFormatter, CustomFormatter, setup_logging


def _record(level: int, msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("tests", level, __file__, 1, msg, args, None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestFormatters:

    def test_level_prefixes(self):
        formatter = CustomFormatter("UTC", "%(message)s")

        assert formatter.format(_record(logging.INFO, "key %s", "ABCD1234")) == "key ABCD1234"
        assert formatter.format(_record(logging.WARNING, "slow")) == "⚠️ slow"
        assert formatter.format(_record(logging.CRITICAL, "down")) == "⛔ down"

    def test_record_is_not_modified(self):
        record = _record(logging.ERROR, "down %s", "AMM")

        CustomFormatter("UTC", "%(message)s").format(record)
        second = ColoredFormatter("UTC", "%(message)s").format(record)

        assert second == "⛔ down AMM"
        assert (record.msg, record.args) == ("down %s", ("AMM",))

    def test_mismatched_args_are_logged_verbatim(self):
        formatter = CustomFormatter("UTC", "%(message)s")

        assert formatter.format(_record(logging.INFO, "%d keys", "many")) == "%d keys"

    def test_color_only_when_requested(self):
        formatter = ColoredFormatter("UTC", "%(message)s")

        assert formatter.format(_record(logging.INFO, "done")) == "done"
        assert formatter.format(_record(logging.INFO, "done", color="green")) == "\033[32mdone\033[0m"
        assert formatter.format(_record(logging.INFO, "done", color="purple")) == "done"


class TestSetup:

    def test_writes_log_file_below_root_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ROOT_DIR", str(tmp_path))
        monkeypatch.setenv("LOG_FILE", "crossref.log")

        logger = setup_logging()
        logger.warning("Profile %s unreachable", "AMM", color="yellow")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert isinstance(logger, ColorLogger)
        assert "⚠️ Profile AMM unreachable" in (tmp_path / "logs" / "crossref.log").read_text(encoding="utf-8")
