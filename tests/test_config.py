"""Tests for ipsbench.config: JobConfig, validation and profile loading."""

from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ipsbench.config import (
    ConfigurationError,
    JobConfig,
    ValidationError,
    config_from_profile,
    load_profile,
    parse_inline_entry,
    raise_for_errors,
    validate_config,
)


class TestJobConfigDefaults(unittest.TestCase):
    def test_defaults(self) -> None:
        c = JobConfig()
        self.assertEqual(c.warmup, 2.0)
        self.assertEqual(c.time, 5.0)
        self.assertEqual(c.iterations, 1)
        self.assertEqual(c.stats, "sd")
        self.assertEqual(c.confidence, 95)
        self.assertFalse(c.quiet)
        self.assertFalse(c.compare)
        self.assertIsNone(c.hold_path)
        self.assertIsNone(c.json_path)
        self.assertFalse(c.share)
        self.assertEqual(c.batch_time, 0.1)
        self.assertEqual(c.format, "human")

    def test_batch_us(self) -> None:
        self.assertEqual(JobConfig(batch_time=0.25).batch_us, 250_000)

    def test_string_paths_become_paths(self) -> None:
        c = JobConfig(hold_path="held.json", json_path="out.json")  # type: ignore[arg-type]
        self.assertEqual(c.hold_path, Path("held.json"))
        self.assertEqual(c.json_path, Path("out.json"))

    def test_to_dict(self) -> None:
        d = JobConfig(json_path=Path("r.json")).to_dict()
        self.assertEqual(d["json_path"], "r.json")
        self.assertIsNone(d["hold_path"])
        self.assertNotIn("entries", d)


class TestValidateConfig(unittest.TestCase):
    def _fields(self, config: JobConfig) -> list[str]:
        return [e.field for e in validate_config(config) if e.severity == "error"]

    def test_defaults_valid(self) -> None:
        self.assertEqual(validate_config(JobConfig()), [])

    def test_zero_warmup_is_valid(self) -> None:
        self.assertEqual(self._fields(JobConfig(warmup=0)), [])

    def test_negative_warmup(self) -> None:
        self.assertIn("warmup", self._fields(JobConfig(warmup=-1)))

    def test_time_must_be_positive(self) -> None:
        self.assertIn("time", self._fields(JobConfig(time=0)))

    def test_iterations_at_least_one(self) -> None:
        self.assertIn("iterations", self._fields(JobConfig(iterations=0)))

    def test_batch_time_positive(self) -> None:
        self.assertIn("batch_time", self._fields(JobConfig(batch_time=0)))

    def test_batch_time_not_shorter_than_time_warns(self) -> None:
        errors = validate_config(JobConfig(time=0.1, batch_time=0.1))
        self.assertEqual([(e.field, e.severity) for e in errors], [("batch_time", "warning")])

    def test_unknown_format(self) -> None:
        self.assertIn("format", self._fields(JobConfig(format="csv")))

    def test_unknown_stats(self) -> None:
        self.assertIn("stats", self._fields(JobConfig(stats="median")))

    def test_bootstrap_confidence_range(self) -> None:
        self.assertIn("confidence", self._fields(JobConfig(stats="bootstrap", confidence=0)))

    def test_sd_ignores_confidence(self) -> None:
        self.assertEqual(self._fields(JobConfig(stats="sd", confidence=0)), [])

    def test_bootstrap_without_numpy(self) -> None:
        with patch.dict(sys.modules, {"numpy": None}):
            errors = validate_config(JobConfig(stats="bootstrap"))
        self.assertTrue(any(e.field == "stats" and "numpy" in e.message for e in errors))

    def test_blank_entry_label(self) -> None:
        self.assertIn("entries", self._fields(JobConfig(entries={" ": "pass"})))


class TestRaiseForErrors(unittest.TestCase):
    def test_no_errors(self) -> None:
        raise_for_errors([])

    def test_warnings_only(self) -> None:
        with self.assertLogs("ipsbench", level="WARNING") as cm:
            raise_for_errors([ValidationError("x", "careful", severity="warning")])
        self.assertIn("careful", cm.output[0])

    def test_fatal_lists_all(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            raise_for_errors(
                [ValidationError("time", "bad time"), ValidationError("format", "bad format")]
            )
        msg = str(ctx.exception)
        self.assertIn("bad time", msg)
        self.assertIn("bad format", msg)

    def test_configuration_error_is_value_error(self) -> None:
        self.assertTrue(issubclass(ConfigurationError, ValueError))


class TestProfiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_load_profile(self) -> None:
        path = self.tmp / "p.yaml"
        path.write_text(
            "warmup: 1\n"
            "time: 3\n"
            "compare: true\n"
            "setup: |\n"
            "  data = list(range(10))\n"
            "entries:\n"
            "  sum: sum(data)\n"
            "  max: max(data)\n"
        )
        data = load_profile(path)
        config = config_from_profile(data)
        self.assertEqual(config.warmup, 1.0)
        self.assertEqual(config.time, 3.0)
        self.assertTrue(config.compare)
        self.assertEqual(config.setup, "data = list(range(10))\n")
        self.assertEqual(config.entries, {"sum": "sum(data)", "max": "max(data)"})

    def test_missing_profile(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(self.tmp / "missing.yaml")

    def test_profile_not_mapping(self) -> None:
        path = self.tmp / "list.yaml"
        path.write_text("- a\n- b\n")
        with self.assertRaises(ValueError):
            load_profile(path)

    def test_unknown_key(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            config_from_profile({"warmpu": 1})
        self.assertIn("warmpu", str(ctx.exception))

    def test_entries_must_be_mapping(self) -> None:
        with self.assertRaises(ValueError):
            config_from_profile({"entries": ["a", "b"]})

    def test_entry_code_must_be_string(self) -> None:
        with self.assertRaises(ValueError):
            config_from_profile({"entries": {"a": 1}})

    def test_cli_overrides_win(self) -> None:
        config = config_from_profile(
            {"time": 3, "stats": "sd", "iterations": 2},
            cli_overrides={"time": 0.5, "stats": None, "hold_path": "h.json"},
        )
        self.assertEqual(config.time, 0.5)
        self.assertEqual(config.stats, "sd")
        self.assertEqual(config.iterations, 2)
        self.assertEqual(config.hold_path, Path("h.json"))

    def test_empty_profile_gives_defaults(self) -> None:
        config = config_from_profile({})
        self.assertEqual(config.time, JobConfig().time)
        self.assertEqual(config.entries, {})


class TestParseInlineEntry(unittest.TestCase):
    def test_basic(self) -> None:
        self.assertEqual(parse_inline_entry("add=1 + 1"), ("add", "1 + 1"))

    def test_code_may_contain_equals(self) -> None:
        self.assertEqual(parse_inline_entry("eq=a == b"), ("eq", "a == b"))

    def test_label_stripped(self) -> None:
        self.assertEqual(parse_inline_entry(" x =pass"), ("x", "pass"))

    def test_no_equals(self) -> None:
        with self.assertRaises(ValueError):
            parse_inline_entry("just code")

    def test_empty_label(self) -> None:
        with self.assertRaises(ValueError):
            parse_inline_entry("=pass")

    def test_empty_code(self) -> None:
        with self.assertRaises(ValueError):
            parse_inline_entry("x=  ")


if __name__ == "__main__":
    unittest.main()
