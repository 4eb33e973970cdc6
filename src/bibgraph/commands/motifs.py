"""Commands: motif detection."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bibgraph.algorithms.motifs import (
    detect_bibliographic_coupling,
    detect_co_citations,
    detect_star_patterns,
    get_triangles,
)
from bibgraph.commands._base import BibCommand, graph_file
from bibgraph.domain.types import StarType

if TYPE_CHECKING:
    from bibgraph.commands._context import AppContext

_edge_type_option = click.option(
    "--edge-type", "edge_types", multiple=True, help="Only count these relation types."
)


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph triangles collaboration.json
  bibgraph -q triangles collaboration.json""",
)
@graph_file
@click.pass_obj
def triangles(app: AppContext, graph_path: Path) -> None:
    """Enumerate triangles and the global clustering coefficient."""
    app.emit(get_triangles(app.load(graph_path)))


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph stars citations.json
  bibgraph stars citations.json --min-degree 10 --type out""",
)
@graph_file
@click.option("--min-degree", type=int, default=None, help="Minimum hub degree.")
@click.option(
    "--type",
    "star_type",
    type=click.Choice([st.value for st in StarType]),
    default=None,
    help="Spoke direction (default: in for directed graphs).",
)
@click.pass_obj
def stars(
    app: AppContext, graph_path: Path, min_degree: int | None, star_type: str | None
) -> None:
    """Find hub-and-spoke star patterns."""
    app.emit(
        detect_star_patterns(
            app.load(graph_path),
            min_degree=app.settings.motifs.min_degree if min_degree is None else min_degree,
            star_type=StarType(star_type) if star_type else None,
        )
    )


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph cocitation citations.json
  bibgraph cocitation citations.json --min-count 3""",
)
@graph_file
@click.option("--min-count", type=int, default=None, help="Minimum common citers.")
@_edge_type_option
@click.pass_obj
def cocitation(
    app: AppContext, graph_path: Path, min_count: int | None, edge_types: tuple[str, ...]
) -> None:
    """Pairs of works cited together by common citing works."""
    app.emit(
        detect_co_citations(
            app.load(graph_path),
            min_count=app.settings.motifs.min_count if min_count is None else min_count,
            edge_types=edge_types or None,
        )
    )


@click.command(
    cls=BibCommand,
    examples="""\
  bibgraph coupling citations.json
  bibgraph coupling citations.json --min-shared 2""",
)
@graph_file
@click.option("--min-shared", type=int, default=None, help="Minimum shared references.")
@_edge_type_option
@click.pass_obj
def coupling(
    app: AppContext, graph_path: Path, min_shared: int | None, edge_types: tuple[str, ...]
) -> None:
    """Pairs of works sharing cited references (bibliographic coupling)."""
    app.emit(
        detect_bibliographic_coupling(
            app.load(graph_path),
            min_shared=app.settings.motifs.min_shared if min_shared is None else min_shared,
            edge_types=edge_types or None,
        )
    )
