"""Tests for layered configuration loading and the frozen settings snapshot."""
from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from helpers.io_utils import write_config, write_text
from prove.core.config import ConfigManager, ConfigStore
from prove.core.exceptions import ConfigError


class TestDefaults:
    def test_bundled_defaults_load_without_project_config(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.thresholds.diff_coverage_functional == 85
        assert settings.thresholds.diff_coverage_functional_refactor == 60
        assert settings.thresholds.global_coverage == 25
        assert settings.git.trunk_branch == "main"
        assert settings.runner.concurrency == 4
        assert settings.runner.report_skipped_on_critical_failure is False
        assert settings.paths.tdd_phase_file == ".tdd-phase"
        assert settings.ci.command("test") == "pytest -q"

    def test_toggles_default_to_coverage_only(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.toggle_enabled("coverage")
        assert settings.toggle_enabled("diffCoverage")
        assert not settings.toggle_enabled("security")
        assert not settings.toggle_enabled("doesNotExist")

    def test_check_timeout_falls_back_to_runner_timeout(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.check_timeout_ms("lint") == 30000
        assert settings.check_timeout_ms("unknown-bucket") == settings.runner.timeout_ms
        assert settings.check_timeout_ms(None) == settings.runner.timeout_ms

    def test_settings_are_read_only(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={}).load()

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.runner.concurrency = 99  # type: ignore[misc]
        with pytest.raises(TypeError):
            settings.toggles["security"] = True  # type: ignore[index]


class TestLayering:
    def test_project_layer_overrides_defaults(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"git": {"trunkBranch": "trunk"}, "runner": {"concurrency": 2}})

        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.git.trunk_branch == "trunk"
        assert settings.runner.concurrency == 2
        # Untouched keys keep their defaults
        assert settings.git.remote == "origin"

    def test_local_layer_wins_over_project_layer(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"thresholds": {"globalCoverage": 40}})
        write_config(tmp_path, {"thresholds": {"globalCoverage": 55}}, local=True)

        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.thresholds.global_coverage == 55

    def test_lists_replace_unless_prefixed_with_plus(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"paths": {"srcGlobs": ["pkg/**/*.py"]}}, name="a.yaml")
        write_config(tmp_path, {"tdd": {"refactorIndicators": ["+", "tidy"]}}, name="b.yaml")

        settings = ConfigStore(tmp_path, env={}).load()

        assert settings.paths.src_globs == ("pkg/**/*.py",)
        assert settings.tdd.refactor_indicators[0] == "refactor"
        assert settings.tdd.refactor_indicators[-1] == "tidy"


class TestEnvironmentOverrides:
    def test_named_alias_sets_threshold(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={"PROVE_GLOBAL_COVERAGE": "70"}).load()
        assert settings.thresholds.global_coverage == 70

    def test_toggle_alias_parses_truthy_words(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={"PROVE_ENABLE_SECURITY": "yes"}).load()
        assert settings.toggle_enabled("security")

        settings = ConfigStore(tmp_path, env={"PROVE_ENABLE_COVERAGE": "0"}).load()
        assert not settings.toggle_enabled("coverage")

    def test_generic_double_underscore_override(self, tmp_path: Path) -> None:
        env = {"PROVE_runner__CONCURRENCY": "8", "PROVE_git__trunkBranch": "develop"}

        settings = ConfigStore(tmp_path, env=env).load()

        assert settings.runner.concurrency == 8
        assert settings.git.trunk_branch == "develop"

    def test_mode_variable_is_not_a_config_override(self, tmp_path: Path) -> None:
        settings = ConfigStore(tmp_path, env={"PROVE_MODE": "non-functional"}).load()
        assert settings.to_dict() == ConfigStore(tmp_path, env={}).load().to_dict()

    def test_env_overrides_beat_project_files(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"runner": {"concurrency": 2}})
        settings = ConfigStore(tmp_path, env={"PROVE_CONCURRENCY": "6"}).load()
        assert settings.runner.concurrency == 6

    def test_process_environment_is_used_by_default(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("PROVE_MAX_COMMIT_SIZE", "42")
        settings = ConfigStore(tmp_path).load()
        assert settings.thresholds.max_commit_size == 42


class TestValidation:
    def test_invalid_yaml_raises_config_error(self, tmp_path: Path) -> None:
        write_text(tmp_path / ".prove" / "config" / "broken.yaml", "runner: [unclosed\n")

        with pytest.raises(ConfigError) as exc:
            ConfigStore(tmp_path, env={}).load()
        assert "broken.yaml" in str(exc.value)

    def test_non_mapping_document_raises(self, tmp_path: Path) -> None:
        write_text(tmp_path / ".prove" / "config" / "list.yaml", "- a\n- b\n")

        with pytest.raises(ConfigError):
            ConfigStore(tmp_path, env={}).load()

    def test_schema_violation_raises_with_errors_in_context(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"thresholds": {"globalCoverage": 150}})

        with pytest.raises(ConfigError) as exc:
            ConfigStore(tmp_path, env={}).load()
        assert "Invalid configuration" in str(exc.value)
        assert exc.value.context["errors"]

    def test_zero_concurrency_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            ConfigStore(tmp_path, env={"PROVE_CONCURRENCY": "0"}).load()

    def test_empty_env_segment_is_malformed(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            ConfigStore(tmp_path, env={"PROVE_runner____concurrency": "2"}).load()


class TestConfigManager:
    def test_get_dot_notation(self, tmp_path: Path) -> None:
        manager = ConfigManager(tmp_path, env={})
        assert manager.get("thresholds.globalCoverage") == 25
        assert manager.get("thresholds.missing", "fallback") == "fallback"

    def test_cached_config_sees_rewritten_files(self, tmp_path: Path) -> None:
        write_config(tmp_path, {"runner": {"concurrency": 2}})
        assert ConfigStore(tmp_path).load().runner.concurrency == 2

        write_config(tmp_path, {"runner": {"concurrency": 3, "timeoutMs": 1000}})
        assert ConfigStore(tmp_path).load().runner.concurrency == 3
