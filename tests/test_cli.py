"""Tests for argument parsing, configuration and the CLI entry point."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

import moddeps
from args import parse_args
from cli_config import apply_cli_overrides, resolve_cf_api_key
from common.errors import (
    MalformedInputError,
    NoMatchingReleaseError,
    RegistryRejectionError,
    TransportError,
    UnknownLoaderError,
)
from constants import Constants, ExitCodes, apply_config, load_yaml_config


@pytest.fixture(autouse=True)
def isolated_constants(monkeypatch, tmp_path):
    """Let tests change tunables freely and keep real config files out of reach."""
    for attr in ("CF_API_KEY", "DATA_DIR", "REQUEST_TIMEOUT", "MAX_CONCURRENCY",
                 "HTTP_RETRY_MAX", "MODRINTH_API_BASE", "REGISTRY_CACHE_TTL_SEC"):
        monkeypatch.setattr(Constants, attr, getattr(Constants, attr))
    monkeypatch.delenv(Constants.ENV_CF_API_KEY, raising=False)
    monkeypatch.delenv(Constants.ENV_CONFIG, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


class TestParseArgs:
    """Tests for the argument parser."""

    def test_update_many_projects(self):
        args = parse_args(["update", "-s", "CurseForge", "-m", "1.20.1", "-l", "forge", "238222", "306612"])

        assert args.COMMAND == "update"
        assert args.SOURCE == "curseforge"
        assert args.projects == ["238222", "306612"]
        assert args.GRADLE_PATH == "build.gradle"
        assert args.LOG_LEVEL == "INFO"

    def test_global_options(self):
        args = parse_args(["--loglevel", "DEBUG", "--cf-api-key", "k", "--timeout", "5",
                           "list", "-s", "modrinth", "-m", "1.20.1", "-l", "fabric", "sodium", "--use-cache"])

        assert args.LOG_LEVEL == "DEBUG"
        assert args.CF_API_KEY == "k"
        assert args.REQUEST_TIMEOUT == 5
        assert args.USE_CACHE is True
        assert args.project == "sodium"

    def test_unknown_source_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["briefs", "-s", "hangar", "x"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestCliConfig:
    """Tests for CLI overrides and API key resolution."""

    def test_apply_cli_overrides(self):
        args = SimpleNamespace(DATA_DIR="/tmp/md", REQUEST_TIMEOUT=3, MAX_CONCURRENCY=0, CF_API_KEY="cli")

        apply_cli_overrides(args)

        assert Constants.DATA_DIR == "/tmp/md"
        assert Constants.REQUEST_TIMEOUT == 3
        assert Constants.MAX_CONCURRENCY == 1
        assert Constants.CF_API_KEY == "cli"

    def test_unset_overrides_keep_values(self):
        before = Constants.REQUEST_TIMEOUT

        apply_cli_overrides(SimpleNamespace(DATA_DIR=None, REQUEST_TIMEOUT=None, MAX_CONCURRENCY=None, CF_API_KEY=None))

        assert Constants.REQUEST_TIMEOUT == before

    def test_key_priority(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_CF_API_KEY, "env")
        assert resolve_cf_api_key() == "env"

        Constants.CF_API_KEY = "config"
        assert resolve_cf_api_key() == "config"
        assert resolve_cf_api_key(" explicit ") == "explicit"

    def test_missing_key(self):
        with pytest.raises(MalformedInputError, match=Constants.ENV_CF_API_KEY):
            resolve_cf_api_key("  ")


class TestYamlConfig:
    """Tests for YAML configuration loading."""

    def test_apply_sections(self, tmp_path):
        path = tmp_path / "custom.yml"
        path.write_text(
            "http:\n  request_timeout: 7\n  retry_max: 5\n"
            "cache:\n  cache_ttl: 60\n"
            "modrinth_api_base: http://localhost:8080/v2\n"
            "curseforge:\n  api_key: from-yaml\n",
            encoding="utf-8",
        )

        apply_config(load_yaml_config(str(path)))

        assert Constants.REQUEST_TIMEOUT == 7
        assert Constants.HTTP_RETRY_MAX == 5
        assert Constants.REGISTRY_CACHE_TTL_SEC == 60
        assert Constants.MODRINTH_API_BASE == "http://localhost:8080/v2"
        assert Constants.CF_API_KEY == "from-yaml"

    def test_default_location(self, tmp_path):
        (tmp_path / "moddeps.yml").write_text("max_concurrency: 2\n", encoding="utf-8")

        assert load_yaml_config() == {"max_concurrency": 2}

    def test_env_location(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere.yaml"
        path.write_text("data_dir: /srv/moddeps\n", encoding="utf-8")
        monkeypatch.setenv(Constants.ENV_CONFIG, str(path))

        assert load_yaml_config() == {"data_dir": "/srv/moddeps"}

    def test_broken_yaml_ignored(self, tmp_path):
        (tmp_path / "moddeps.yml").write_text("http: [unclosed\n", encoding="utf-8")

        assert load_yaml_config() == {}

    def test_invalid_value_ignored(self):
        before = Constants.REQUEST_TIMEOUT

        apply_config({"request_timeout": "soon"})

        assert Constants.REQUEST_TIMEOUT == before

    def test_no_config(self):
        assert load_yaml_config() == {}


class TestMain:
    """Tests for the moddeps entry point."""

    def _run(self, argv):
        with pytest.raises(SystemExit) as excinfo:
            moddeps.main(argv)
        return excinfo.value.code

    def test_single_update(self, capsys):
        with patch("operations.update_dependency", new=AsyncMock(return_value="✅ done")) as mock_update:
            code = self._run(["update", "-s", "modrinth", "-m", "1.20.1", "-l", "fabric", "sodium"])

        assert code == ExitCodes.SUCCESS.value
        mock_update.assert_awaited_once_with("build.gradle", "sodium", "1.20.1", "fabric", "modrinth", None)
        assert "✅ done" in capsys.readouterr().out

    def test_batch_with_failure_warns(self, capsys):
        reports = {"sodium": "✅ ok", "gone": "❌ Modrinth API Error: 404"}
        with patch("operations.update_dependencies_batch", new=AsyncMock(return_value=reports)):
            code = self._run(["update", "-s", "modrinth", "-m", "1.20.1", "-l", "fabric", "sodium", "gone"])

        assert code == ExitCodes.EXIT_WARNINGS.value
        out = capsys.readouterr().out
        assert "[sodium] ✅ ok" in out
        assert "[gone] ❌" in out

    def test_apply_selections_parsed(self):
        with patch("operations.apply_selected_versions_batch", new=AsyncMock(return_value="✅ a\n✅ b\n")) as mock_apply:
            code = self._run(["apply", "-s", "curseforge", "-l", "forge", "1=10", "2=20"])

        assert code == ExitCodes.SUCCESS.value
        assert mock_apply.await_args.args[2] == [("1", "10"), ("2", "20")]

    def test_bad_selection(self):
        code = self._run(["apply", "-s", "modrinth", "-l", "fabric", "sodium"])

        assert code == ExitCodes.RESOLUTION_ERROR.value

    def test_no_match_exit_code(self):
        error = NoMatchingReleaseError("Modrinth", "1.20.1", "fabric")
        with patch("operations.update_dependency", new=AsyncMock(side_effect=error)):
            code = self._run(["update", "-s", "modrinth", "-m", "1.20.1", "-l", "fabric", "sodium"])

        assert code == ExitCodes.RESOLUTION_ERROR.value

    def test_missing_file_exit_code(self):
        with patch("operations.update_dependency", new=AsyncMock(side_effect=FileNotFoundError("nope"))):
            code = self._run(["update", "-s", "modrinth", "-m", "1.20.1", "-l", "fabric", "sodium"])

        assert code == ExitCodes.FILE_ERROR.value

    def test_refresh_failure_is_connection_error(self):
        with patch("operations.refresh_version_cache", return_value=False):
            assert self._run(["refresh-versions"]) == ExitCodes.CONNECTION_ERROR.value

    def test_config_then_cli_precedence(self, tmp_path):
        config = tmp_path / "cfg.yml"
        config.write_text("request_timeout: 9\nmax_concurrency: 8\n", encoding="utf-8")
        with patch("operations.clear_all_caches") as mock_clear:
            code = self._run(["-c", str(config), "--timeout", "2", "clear-cache"])

        assert code == ExitCodes.SUCCESS.value
        mock_clear.assert_called_once_with()
        assert Constants.REQUEST_TIMEOUT == 2
        assert Constants.MAX_CONCURRENCY == 8


class TestExitCodeFor:
    """Tests for error to exit code mapping."""

    def test_mapping(self):
        assert moddeps.exit_code_for(TransportError("u", 3)) is ExitCodes.CONNECTION_ERROR
        assert moddeps.exit_code_for(RegistryRejectionError("CurseForge", 403, "u", "")) is ExitCodes.CONNECTION_ERROR
        assert moddeps.exit_code_for(UnknownLoaderError("x")) is ExitCodes.RESOLUTION_ERROR
        assert moddeps.exit_code_for(PermissionError("ro")) is ExitCodes.FILE_ERROR
