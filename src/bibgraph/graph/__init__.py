"""Graph layer — the adjacency-indexed container and its loaders.

May import from domain. Must never import from algorithms, config, or commands.
"""

from bibgraph.graph.core import Graph

__all__ = ["Graph"]
