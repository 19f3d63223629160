"""Tests for layered settings resolution and validation."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from core.settings import (
    ConfigValidationError,
    Settings,
    find_config_file,
    load_config_file,
    resolve_settings,
    resolve_strict_config_validation,
    validate_settings_payload,
)


class IsolatedEnvMixin:
    """Run each test without DOXYSEARCH_* variables, .env files or home config."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)
        clean_env = {k: v for k, v in os.environ.items() if not k.startswith("DOXYSEARCH_")}
        patches = [
            mock.patch.dict(os.environ, clean_env, clear=True),
            mock.patch("core.settings.load_dotenv"),
            mock.patch("core.settings.Path.cwd", return_value=self.tmp_path),
            mock.patch("core.settings.Path.home", return_value=self.tmp_path / "home"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def write_config(self, text: str, name: str = ".doxysearch.yml") -> str:
        path = self.tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)


class TestValidateSettingsPayload(unittest.TestCase):
    def test_coerces_strings(self) -> None:
        validated = validate_settings_payload(
            {
                "case_sensitive": "yes",
                "default_limit": "25",
                "fuzzy_threshold": "0.25",
                "verbose": "off",
            },
            "environment",
        )
        self.assertEqual(
            validated,
            {
                "case_sensitive": True,
                "default_limit": 25,
                "fuzzy_threshold": 0.25,
                "verbose": False,
            },
        )

    def test_lenient_mode_drops_invalid_entries(self) -> None:
        with self.assertLogs("core.settings", level="WARNING") as logs:
            validated = validate_settings_payload(
                {"engine": "semantic", "default_limit": 0, "colour": "red", "exact_match": True},
                "config",
            )
        self.assertEqual(validated, {"exact_match": True})
        self.assertEqual(len(logs.records), 3)

    def test_strict_mode_raises(self) -> None:
        for payload in (
            {"output_format": "xml"},
            {"default_limit": 1001},
            {"fuzzy_threshold": 1.5},
            {"case_sensitive": "maybe"},
            {"unknown": 1},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(ConfigValidationError):
                    validate_settings_payload(payload, "config", strict=True)

    def test_bool_is_not_an_integer(self) -> None:
        with self.assertRaises(ConfigValidationError):
            validate_settings_payload({"default_limit": True}, "config", strict=True)


class TestConfigFiles(IsolatedEnvMixin, unittest.TestCase):
    def test_explicit_missing_file_raises(self) -> None:
        with self.assertRaises(ConfigValidationError):
            find_config_file(str(self.tmp_path / "missing.yml"))

    def test_no_config_found(self) -> None:
        self.assertIsNone(find_config_file())

    def test_cwd_config_found(self) -> None:
        path = self.write_config("engine: fuzzy\n")
        self.assertEqual(find_config_file(), path)

    def test_load_non_mapping(self) -> None:
        path = self.write_config("- a\n- b\n", name="list.yml")
        self.assertEqual(load_config_file(path), {})
        with self.assertRaises(ConfigValidationError):
            load_config_file(path, strict=True)

    def test_load_invalid_yaml(self) -> None:
        path = self.write_config("engine: [unclosed\n", name="bad.yml")
        self.assertEqual(load_config_file(path), {})
        with self.assertRaises(ConfigValidationError):
            load_config_file(path, strict=True)

    def test_load_empty_file(self) -> None:
        self.assertEqual(load_config_file(self.write_config("", name="empty.yml")), {})


class TestResolveSettings(IsolatedEnvMixin, unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(resolve_settings(), Settings())

    def test_precedence_file_env_overrides(self) -> None:
        path = self.write_config(
            "doxygen_path: docs/xml\nengine: fuzzy\ndefault_limit: 10\noutput_format: json\n",
            name="custom.yml",
        )
        os.environ["DOXYSEARCH_LIMIT"] = "20"
        os.environ["DOXYSEARCH_FORMAT"] = "text"

        settings = resolve_settings(
            config_path=path,
            overrides={"default_limit": 5, "engine": None},
        )

        self.assertEqual(settings.doxygen_path, "docs/xml")
        self.assertEqual(settings.engine, "fuzzy")
        self.assertEqual(settings.output_format, "text")
        self.assertEqual(settings.default_limit, 5)

    def test_invalid_override_always_raises(self) -> None:
        with self.assertRaises(ConfigValidationError):
            resolve_settings(overrides={"default_limit": 0}, strict=False)

    def test_invalid_env_value_ignored_in_lenient_mode(self) -> None:
        os.environ["DOXYSEARCH_ENGINE"] = "quantum"
        self.assertEqual(resolve_settings(strict=False).engine, "simple")

    def test_strict_mode_from_environment(self) -> None:
        os.environ["DOXYSEARCH_STRICT_CONFIG"] = "true"
        os.environ["DOXYSEARCH_ENGINE"] = "quantum"
        self.assertTrue(resolve_strict_config_validation())
        with self.assertRaises(ConfigValidationError):
            resolve_settings()


if __name__ == "__main__":
    unittest.main()
