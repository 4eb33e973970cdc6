"""Tests for the communities command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from bibgraph.cli import cli

ALL_NODES = ["P1", "P2", "P3", "P4", "P5", "P6"]
TRIANGLES = [["P1", "P2", "P3"], ["P4", "P5", "P6"]]


def _communities(runner: CliRunner, graph_file: Path, *args: str) -> dict:
    result = runner.invoke(cli, ["--json", "communities", str(graph_file), *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def _members(data: dict) -> list[list[str]]:
    return sorted(sorted(c["members"]) for c in data["value"]["communities"])


@pytest.mark.usefixtures("_isolated_cwd")
class TestModularityAlgorithms:
    @pytest.mark.parametrize("algorithm", ["louvain", "leiden"])
    def test_splits_bridged_triangles(
        self, cli_runner: CliRunner, graph_file: Path, algorithm: str
    ) -> None:
        data = _communities(cli_runner, graph_file, "--algorithm", algorithm)
        assert data["op"] == algorithm
        assert data["value"]["algorithm"] == algorithm
        assert _members(data) == TRIANGLES
        assert data["value"]["modularity"] == pytest.approx(2 * (3 / 7 - 0.25))

    def test_default_is_louvain(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file)
        assert data["op"] == "louvain"

    def test_resolution_flag(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file, "--resolution", "0.01")
        assert data["value"]["parameters"]["resolution"] == 0.01
        assert _members(data) == [ALL_NODES]

    def test_resolution_from_config(
        self, cli_runner: CliRunner, graph_file: Path, tmp_path: Path
    ) -> None:
        (tmp_path / "bibgraph.toml").write_text("[clustering]\nresolution = 0.01\n")
        data = _communities(cli_runner, graph_file)
        assert _members(data) == [ALL_NODES]

    def test_invalid_resolution(self, cli_runner: CliRunner, graph_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["communities", str(graph_file), "--resolution", "-1"]
        )
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.stderr


@pytest.mark.usefixtures("_isolated_cwd")
class TestOtherAlgorithms:
    @pytest.mark.parametrize("algorithm", ["label-propagation", "infomap", "spectral"])
    def test_covers_every_node(
        self, cli_runner: CliRunner, graph_file: Path, algorithm: str
    ) -> None:
        data = _communities(cli_runner, graph_file, "--algorithm", algorithm)
        members = [m for c in data["value"]["communities"] for m in c["members"]]
        assert sorted(members) == ALL_NODES

    def test_infomap_reports_codelength(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file, "--algorithm", "infomap")
        assert data["value"]["codelength"] > 0

    def test_spectral_bisection(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file, "-a", "spectral", "--k", "2")
        assert _members(data) == TRIANGLES
        assert data["value"]["balance"] == 1.0

    def test_spectral_needs_k_nodes(self, cli_runner: CliRunner, graph_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["communities", str(graph_file), "-a", "spectral", "--k", "7"]
        )
        assert result.exit_code == 1
        assert "INSUFFICIENT_NODES" in result.stderr

    def test_iteration_cap_is_partial(self, cli_runner: CliRunner, graph_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["communities", str(graph_file), "-a", "spectral", "--max-iterations", "1"]
        )
        assert result.exit_code == 0
        assert result.stdout.startswith("PARTIAL: spectral_partition")


    @pytest.mark.parametrize("algorithm", ["louvain", "label-propagation", "spectral"])
    def test_zero_max_iterations_is_rejected(
        self, cli_runner: CliRunner, graph_file: Path, algorithm: str
    ) -> None:
        result = cli_runner.invoke(
            cli, ["communities", str(graph_file), "-a", algorithm, "--max-iterations", "0"]
        )
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.stderr

    def test_label_propagation_min_improvement_from_config(
        self, cli_runner: CliRunner, graph_file: Path, tmp_path: Path
    ) -> None:
        (tmp_path / "bibgraph.toml").write_text("[clustering]\nmin_improvement = 0.5\n")
        data = _communities(cli_runner, graph_file, "-a", "label-propagation")
        assert data["value"]["parameters"]["min_improvement"] == 0.5
        assert data["partial"] is None

    def test_spectral_max_nodes_from_config(
        self, cli_runner: CliRunner, graph_file: Path, tmp_path: Path
    ) -> None:
        (tmp_path / "bibgraph.toml").write_text("[spectral]\nmax_nodes = 5\n")
        result = cli_runner.invoke(cli, ["communities", str(graph_file), "-a", "spectral"])
        assert result.exit_code == 1
        assert "GRAPH_TOO_LARGE" in result.stderr

@pytest.mark.usefixtures("_isolated_cwd")
class TestHierarchical:
    def test_flat_cut(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(
            cli_runner, graph_file, "-a", "hierarchical", "--linkage", "single", "--clusters", "2"
        )
        value = data["value"]
        assert value["linkage"] == "single"
        assert value["distance"] == "shortest_path"
        assert len(value["heights"]) == 5
        assert len(value["clusters"]) == 2
        assert sorted(m for cluster in value["clusters"] for m in cluster) == ALL_NODES

    def test_clusters_capped_at_node_count(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file, "-a", "hierarchical", "--clusters", "50")
        assert len(data["value"]["clusters"]) == 6

    def test_jaccard_distance(self, cli_runner: CliRunner, graph_file: Path) -> None:
        data = _communities(cli_runner, graph_file, "-a", "hierarchical", "--distance", "jaccard")
        assert data["value"]["distance"] == "jaccard"

    def test_empty_graph(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text('{"directed": false, "nodes": [], "edges": []}')
        result = cli_runner.invoke(cli, ["communities", str(empty), "-a", "hierarchical"])
        assert result.exit_code == 1
        assert "EMPTY_GRAPH" in result.stderr

    def test_max_nodes_from_config(
        self, cli_runner: CliRunner, graph_file: Path, tmp_path: Path
    ) -> None:
        (tmp_path / "bibgraph.toml").write_text("[hierarchical]\nmax_nodes = 5\n")
        result = cli_runner.invoke(cli, ["communities", str(graph_file), "-a", "hierarchical"])
        assert result.exit_code == 1
        assert "GRAPH_TOO_LARGE" in result.stderr

    def test_zero_clusters_is_rejected(self, cli_runner: CliRunner, graph_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["communities", str(graph_file), "-a", "hierarchical", "--clusters", "0"]
        )
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.stderr
