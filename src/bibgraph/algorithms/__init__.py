"""Algorithm layer — pure functions ``(graph, options) -> Result``.

Algorithms may import from domain and graph layers.
They must never import from config, commands, or output.
"""

from bibgraph.algorithms._common import CancelToken
from bibgraph.algorithms.clustering import (
    hierarchical_clustering,
    infomap,
    label_propagation,
    leiden,
    louvain,
    spectral_partition,
)
from bibgraph.algorithms.decomposition import (
    biconnected_components,
    core_periphery,
    extract_k_core,
    extract_k_truss,
    k_core_decomposition,
)
from bibgraph.algorithms.extraction import (
    extract_ego_network,
    extract_induced_subgraph,
    extract_reachability_subgraph,
    filter_graph,
    filter_subgraph,
)
from bibgraph.algorithms.metrics import (
    cluster_metrics,
    conductance,
    coverage_ratio,
    density,
    modularity,
)
from bibgraph.algorithms.motifs import (
    detect_bibliographic_coupling,
    detect_co_citations,
    detect_star_patterns,
    get_triangles,
)
from bibgraph.algorithms.pathfinding import dijkstra, shortest_path_unweighted
from bibgraph.algorithms.traversal import (
    bfs,
    connected_components,
    detect_cycle,
    dfs,
    strongly_connected_components,
    topological_sort,
)

__all__ = [
    "CancelToken",
    "bfs",
    "biconnected_components",
    "cluster_metrics",
    "conductance",
    "connected_components",
    "core_periphery",
    "coverage_ratio",
    "density",
    "detect_bibliographic_coupling",
    "detect_co_citations",
    "detect_cycle",
    "detect_star_patterns",
    "dfs",
    "dijkstra",
    "extract_ego_network",
    "extract_induced_subgraph",
    "extract_k_core",
    "extract_k_truss",
    "extract_reachability_subgraph",
    "filter_graph",
    "filter_subgraph",
    "get_triangles",
    "hierarchical_clustering",
    "infomap",
    "k_core_decomposition",
    "label_propagation",
    "leiden",
    "louvain",
    "modularity",
    "shortest_path_unweighted",
    "spectral_partition",
    "strongly_connected_components",
    "topological_sort",
]
