"""Click base classes and shared parameters for bibgraph commands.

``BibCommand`` and ``BibGroup`` accept an ``examples`` string; passing
``--examples`` prints it and exits, keeping ``--help`` short.
``graph_file`` is the positional GRAPH argument every analysis takes.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])


def _examples_option(examples: str) -> click.Option:
    def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show,
        help="Show usage examples.",
    )


class BibCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class BibGroup(click.Group):
    """Group whose subcommands default to :class:`BibCommand`."""

    command_class = BibCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


def graph_file(func: F) -> F:
    """Attach the ``GRAPH`` argument: a JSON graph document on disk."""
    return click.argument(
        "graph_path",
        metavar="GRAPH",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
    )(func)
