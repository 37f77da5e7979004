import argparse

import pytest

from multitool.core.errors import ParseError
from multitool.core.logging import LogLevel, add_log_level_argument


class TestLogLevelParse:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("info", LogLevel.INFO),
            ("INFO", LogLevel.INFO),
            ("Trace", LogLevel.TRACE),
            ("debug", LogLevel.DEBUG),
            ("DeBuG", LogLevel.DEBUG),
            ("WARN", LogLevel.WARN),
            ("error", LogLevel.ERROR),
        ],
    )
    def test_parse_is_case_insensitive(self, raw, expected):
        assert LogLevel.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["info", "TRACE", "Debug", "wArN", "ERROR"])
    def test_str_renders_lowercase_name(self, raw):
        assert str(LogLevel.parse(raw)) == raw.lower()

    @pytest.mark.parametrize("raw", ["", "warning", "verbose", " info", "err"])
    def test_invalid_name_raises_parse_error(self, raw):
        with pytest.raises(ParseError) as exc_info:
            LogLevel.parse(raw)

        assert repr(raw) in str(exc_info.value)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            LogLevel.parse("fatal")

    def test_default_member_is_info(self):
        assert list(LogLevel)[0] is LogLevel.INFO

    def test_loguru_level_mapping(self):
        assert LogLevel.WARN.loguru_level == "WARNING"
        assert LogLevel.TRACE.loguru_level == "TRACE"


class TestLogLevelArgument:
    def test_parses_flag_value(self):
        parser = argparse.ArgumentParser()
        add_log_level_argument(parser)

        args = parser.parse_args(["--log-level", "DEBUG"])

        assert args.log_level is LogLevel.DEBUG

    def test_default_is_info(self):
        parser = argparse.ArgumentParser()
        add_log_level_argument(parser)

        assert parser.parse_args([]).log_level is LogLevel.INFO

    def test_custom_flags_and_default(self):
        parser = argparse.ArgumentParser()
        add_log_level_argument(parser, "-l", "--level", default=LogLevel.WARN)

        assert parser.parse_args([]).level is LogLevel.WARN
        assert parser.parse_args(["-l", "trace"]).level is LogLevel.TRACE

    def test_invalid_value_exits(self):
        parser = argparse.ArgumentParser()
        add_log_level_argument(parser)

        with pytest.raises(SystemExit):
            parser.parse_args(["--log-level", "loud"])
