"""Community detection algorithms."""

from bibgraph.algorithms.clustering._base import ClusteringResult, Community
from bibgraph.algorithms.clustering.hierarchical import Dendrogram, Merge, hierarchical_clustering
from bibgraph.algorithms.clustering.infomap import codelength, infomap
from bibgraph.algorithms.clustering.label_propagation import label_propagation
from bibgraph.algorithms.clustering.leiden import leiden
from bibgraph.algorithms.clustering.louvain import louvain
from bibgraph.algorithms.clustering.spectral import spectral_partition

__all__ = [
    "ClusteringResult",
    "Community",
    "Dendrogram",
    "Merge",
    "codelength",
    "hierarchical_clustering",
    "infomap",
    "label_propagation",
    "leiden",
    "louvain",
    "spectral_partition",
]
