"""Subcommand modules for bibgraph.

Provides register_commands(), which imports the command modules when
the root group is built rather than at package import.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every standalone analysis command on the root CLI group."""
    from bibgraph.commands.communities import communities
    from bibgraph.commands.extract import ego
    from bibgraph.commands.inspect import components, cycles, info, path, toposort
    from bibgraph.commands.motifs import cocitation, coupling, stars, triangles
    from bibgraph.commands.structure import biconnected, core_periphery_cmd, kcore, truss

    for command in (
        info,
        communities,
        path,
        components,
        cycles,
        toposort,
        kcore,
        core_periphery_cmd,
        biconnected,
        truss,
        triangles,
        stars,
        cocitation,
        coupling,
        ego,
    ):
        cli.add_command(command)
