"""Tests for BibgraphSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from bibgraph.config.settings import BibgraphSettings
from bibgraph.domain.types import Linkage


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BIBGRAPH_CONFIG", raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.verbose is False
        assert settings.clustering.resolution == 1.0
        assert settings.spectral.seed == 42
        assert settings.hierarchical.linkage == Linkage.AVERAGE
        assert settings.decomposition.truss_k == 3

    def test_frozen(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "bibgraph.toml"
        toml.write_text('[clustering]\nresolution = 1.5\n[hierarchical]\nlinkage = "single"\n')
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.config_path == toml
        assert settings.clustering.resolution == 1.5
        assert settings.hierarchical.linkage == Linkage.SINGLE
        assert settings.clustering.max_iterations == 100  # default preserved

    def test_discovered_from_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text("[spectral]\nk = 4\n")
        child = tmp_path / "data" / "2024"
        child.mkdir(parents=True)
        settings = BibgraphSettings.from_cli(cwd=child)
        assert settings.spectral.k == 4

    def test_empty_toml_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text("")
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.motifs.min_degree == 3

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "analysis.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[pathfinding]\nweight_property = \"score\"\ninvert = true\n")
        settings = BibgraphSettings.from_cli(config_path=str(custom), cwd=tmp_path)
        assert settings.config_path == custom
        assert settings.pathfinding.weight_property == "score"
        assert settings.pathfinding.invert is True

    def test_missing_explicit_path_falls_back_to_defaults(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(config_path=str(tmp_path / "nope.toml"))
        assert settings.config_path is None
        assert settings.clustering.resolution == 1.0

    def test_invalid_toml_raises_click_error(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text("[clustering\nresolution = ")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            BibgraphSettings.from_cli(cwd=tmp_path)

    def test_out_of_range_value_is_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "bibgraph.toml").write_text("[spectral]\nk = 1\n")
        with pytest.raises(Exception):
            BibgraphSettings.from_cli(cwd=tmp_path)


class TestCliFlags:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = BibgraphSettings.from_cli(
            cwd=tmp_path,
            json_output=True,
            quiet=True,
            verbose=True,
        )
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True

    def test_cli_flags_override_toml(self, tmp_path: Path) -> None:
        """CLI flags take priority over TOML values."""
        (tmp_path / "bibgraph.toml").write_text("quiet = true\n")
        settings = BibgraphSettings.from_cli(cwd=tmp_path, quiet=False)
        assert settings.quiet is False


class TestEnvVars:
    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIBGRAPH_QUIET", "true")
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.quiet is True

    def test_nested_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIBGRAPH_CLUSTERING__RESOLUTION", "2.5")
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.clustering.resolution == 2.5

    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "bibgraph.toml").write_text("[motifs]\nmin_degree = 5\n")
        monkeypatch.setenv("BIBGRAPH_MOTIFS__MIN_DEGREE", "7")
        settings = BibgraphSettings.from_cli(cwd=tmp_path)
        assert settings.motifs.min_degree == 7
