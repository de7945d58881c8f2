"""Tests for NotegraphSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest
from pydantic import ValidationError

from notegraph.config.settings import NotegraphSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("NOTEGRAPH_CONFIG", "NOTEGRAPH_USER", "NOTEGRAPH_GRAPH__MAX_TAGS_PER_NODE"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.config_path is None
        assert settings.user == "local"
        assert settings.json_output is False
        assert settings.sync is False
        assert settings.graph.max_nodes_per_graph == 10_000
        assert settings.plugins.enabled is True
        assert settings.db_path == tmp_path / ".notegraph" / "notegraph.db"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "notegraph.toml"
        toml.write_text('user = "carol"\n[graph]\nmax_tags_per_node = 5\n')
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path)
        assert settings.config_path == toml
        assert settings.user == "carol"
        assert settings.graph.max_tags_per_node == 5
        assert settings.graph.max_edges_per_graph == 50_000

    def test_workspace_root_from_config_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "notegraph.toml").write_text("")
        child = tmp_path / "notes" / "deep"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        settings = NotegraphSettings.from_cli()
        assert settings.workspace_root == tmp_path.resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("[plugins]\nmax_retries = 7\n")
        settings = NotegraphSettings.from_cli(config_path=str(custom), workspace_root=tmp_path)
        assert settings.plugins.max_retries == 7

    def test_missing_config_path(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            NotegraphSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "notegraph.toml").write_text("user = \n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            NotegraphSettings.from_cli(workspace_root=tmp_path)


class TestPriority:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "notegraph.toml").write_text("[graph]\nmax_tags_per_node = 5\n")
        monkeypatch.setenv("NOTEGRAPH_GRAPH__MAX_TAGS_PER_NODE", "9")
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path)
        assert settings.graph.max_tags_per_node == 9

    def test_cli_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTEGRAPH_USER", "from-env")
        assert NotegraphSettings.from_cli(workspace_root=tmp_path).user == "from-env"
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path, user="from-cli")
        assert settings.user == "from-cli"

    def test_none_flags_dropped(self, tmp_path: Path) -> None:
        (tmp_path / "notegraph.toml").write_text("verbose = true\n")
        settings = NotegraphSettings.from_cli(workspace_root=tmp_path, verbose=None)
        assert settings.verbose is True
