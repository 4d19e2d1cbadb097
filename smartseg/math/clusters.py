"""
K-means clustering implementation for smartseg.

This module provides Lloyd's K-means over the standardized feature space,
with random distinct-row initialization and reinitialization of clusters
that lose all their members.
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Any
from copy import deepcopy

from smartseg.errors import InvalidConfiguration
from smartseg.utils.general import RandomSource, make_rng

logger = logging.getLogger(__name__)


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                center: np.ndarray,
                members: Optional[List[int]] = None,
                id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of rows belonging to the cluster
            id: Cluster label
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def add_member(self, idx: int) -> None:
        """
        Add a member to the cluster.

        Args:
            idx: Index of the row to add
        """
        self.members.append(idx)

    def clear_members(self) -> None:
        """Clear all members from the cluster."""
        self.members = []

    def update_center(self, data: np.ndarray) -> bool:
        """
        Move the center to the mean of the cluster's members.

        Args:
            data: Data matrix containing all points

        Returns:
            False if the cluster has no members (center left unchanged)
        """
        if not self.members:
            return False

        self.center = np.mean(data[self.members], axis=0)
        return True

    def __repr__(self) -> str:
        """String representation of the cluster."""
        return f"Cluster(id={self.id}, members={len(self.members)})"


class KMeansState:
    """
    Result of a single K-means run.

    Labels and centroids are owned by the run that produced them and are
    not modified afterwards.
    """

    def __init__(self,
                labels: np.ndarray,
                centroids: np.ndarray,
                iterations: int = 0,
                converged: bool = False,
                inertia: float = 0.0):
        self.labels = labels
        self.centroids = centroids
        self.iterations = iterations
        self.converged = converged
        self.inertia = inertia

    @property
    def k(self) -> int:
        """Number of centroids."""
        return len(self.centroids)

    def clusters(self) -> List[Cluster]:
        """
        Rebuild Cluster objects from the labels and centroids.

        Returns:
            List of clusters, one per centroid, in label order
        """
        return [Cluster(center, np.flatnonzero(self.labels == i).tolist(), i)
                for i, center in enumerate(self.centroids)]

    def __repr__(self) -> str:
        return (f"KMeansState(k={self.k}, n={len(self.labels)}, "
                f"iterations={self.iterations}, converged={self.converged})")


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Calculate Euclidean distance between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Euclidean distance
    """
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))


def validate_kmeans_args(n_rows: int, k: Any, max_iters: Any) -> None:
    """
    Check K-means parameters against the data size.

    Args:
        n_rows: Number of rows in the data
        k: Requested number of clusters
        max_iters: Iteration bound

    Raises:
        InvalidConfiguration: If k is not in [1, n_rows] or max_iters is
            not a positive integer
    """
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidConfiguration(f"Number of clusters must be an integer, got {k!r}")
    if k < 1:
        raise InvalidConfiguration(f"Number of clusters must be at least 1, got {k}")
    if k > n_rows:
        raise InvalidConfiguration(
            f"Cannot form {k} clusters from {n_rows} rows; k must not exceed the number of rows")
    if isinstance(max_iters, bool) or not isinstance(max_iters, (int, np.integer)) or max_iters < 1:
        raise InvalidConfiguration(f"max_iters must be a positive integer, got {max_iters!r}")


def init_clusters(data: np.ndarray,
                 k: int,
                 rng: RandomSource = None) -> List[Cluster]:
    """
    Initialize k clusters centered on k distinct rows chosen uniformly at random.

    Args:
        data: Data matrix
        k: Number of clusters (at most the number of rows)
        rng: Random generator or seed

    Returns:
        List of initialized clusters
    """
    rng = make_rng(rng)
    indices = rng.choice(data.shape[0], size=k, replace=False)
    return [Cluster(data[idx], [], i) for i, idx in enumerate(indices)]


def assign_points_to_clusters(data: np.ndarray, clusters: List[Cluster]) -> np.ndarray:
    """
    Assign each data point to the nearest cluster.

    Ties go to the cluster with the lowest index.

    Args:
        data: Data matrix
        clusters: List of clusters (member lists are replaced)

    Returns:
        Label array, one entry per row
    """
    centers = np.array([cluster.center for cluster in clusters])

    # (n_rows, k) distance table
    dists = np.linalg.norm(data[:, np.newaxis, :] - centers[np.newaxis, :, :], axis=2)
    labels = np.argmin(dists, axis=1)

    for i, cluster in enumerate(clusters):
        cluster.members = np.flatnonzero(labels == i).tolist()

    return labels


def update_cluster_centers(data: np.ndarray,
                          clusters: List[Cluster],
                          rng: RandomSource = None) -> List[int]:
    """
    Update the centers of all clusters.

    A cluster without members is moved to a uniformly random row.

    Args:
        data: Data matrix
        clusters: List of clusters
        rng: Random generator or seed

    Returns:
        Indices of the clusters that were reinitialized
    """
    rng = make_rng(rng)
    reinitialized = []

    for i, cluster in enumerate(clusters):
        if not cluster.update_center(data):
            cluster.center = np.array(data[rng.integers(data.shape[0])], dtype=float)
            reinitialized.append(i)

    return reinitialized


def cluster_step(data: np.ndarray,
                clusters: List[Cluster],
                rng: RandomSource = None):
    """
    Perform one step of K-means clustering.

    Args:
        data: Data matrix
        clusters: Current clusters
        rng: Random generator used to reinitialize empty clusters

    Returns:
        Tuple of (updated clusters, labels, reinitialized cluster indices)
    """
    # Make a deep copy to avoid modifying the input
    clusters = deepcopy(clusters)

    labels = assign_points_to_clusters(data, clusters)
    reinitialized = update_cluster_centers(data, clusters, rng)

    return clusters, labels, reinitialized


def inertia(data: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> float:
    """
    Within-cluster sum of squared distances.

    Args:
        data: Data matrix
        labels: Label per row
        centroids: Centroid matrix

    Returns:
        Sum of squared distances from each row to its centroid
    """
    if len(labels) == 0:
        return 0.0
    diffs = data - centroids[labels]
    return float(np.sum(diffs * diffs))


def cluster_sizes(labels: np.ndarray, k: Optional[int] = None) -> List[int]:
    """
    Count rows per label.

    Args:
        labels: Label per row
        k: Number of clusters (defaults to max label + 1)

    Returns:
        List of counts indexed by label
    """
    labels = np.asarray(labels, dtype=int)
    if k is None:
        k = int(labels.max()) + 1 if labels.size else 0
    return np.bincount(labels, minlength=k).tolist()


def kmeans(data: np.ndarray,
          k: int,
          max_iters: int = 200,
          rng: RandomSource = None) -> KMeansState:
    """
    Perform K-means clustering on the data.

    The loop stops when an assignment pass changes no label, or after
    max_iters passes. A pass that had to reinitialize an empty cluster
    is never treated as converged.

    Args:
        data: Data matrix (standardized features)
        k: Number of clusters, 1 <= k <= number of rows
        max_iters: Maximum number of iterations
        rng: Random generator or seed; None uses a system-seeded generator

    Returns:
        KMeansState with labels, centroids and iteration count

    Raises:
        InvalidConfiguration: If k or max_iters are out of range
        ValueError: If data is a non-empty array that is not 2-D
    """
    data = np.asarray(data, dtype=float)

    if data.size and data.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got an array of shape {data.shape}")

    if data.ndim != 2 or data.shape[0] == 0:
        # No data points
        n_cols = data.shape[1] if data.ndim == 2 else 0
        return KMeansState(np.zeros(0, dtype=int), np.zeros((0, n_cols)), 0, True, 0.0)

    validate_kmeans_args(data.shape[0], k, max_iters)
    rng = make_rng(rng)

    clusters = init_clusters(data, k, rng)
    labels = np.full(data.shape[0], -1, dtype=int)
    converged = False
    iterations = 0

    while iterations < max_iters:
        clusters, new_labels, reinitialized = cluster_step(data, clusters, rng)
        iterations += 1

        moved = not np.array_equal(labels, new_labels)
        labels = new_labels

        if reinitialized:
            logger.debug(f"Iteration {iterations}: reinitialized empty clusters {reinitialized}")

        if not moved and not reinitialized:
            converged = True
            break

    centroids = np.array([cluster.center for cluster in clusters])

    logger.debug(f"K-means with k={k} finished after {iterations} iterations (converged={converged})")

    return KMeansState(labels, centroids, iterations, converged, inertia(data, labels, centroids))


def clusters_to_dict(state: KMeansState, row_names: Optional[List[Any]] = None) -> List[Dict]:
    """
    Convert a K-means result to a dictionary format for serialization.

    Args:
        state: K-means result
        row_names: Optional mapping from row positions to row names

    Returns:
        List of cluster dictionaries
    """
    result = []

    for cluster in state.clusters():
        if row_names is not None:
            members = [row_names[idx] for idx in cluster.members]
        else:
            members = cluster.members

        result.append({
            'id': cluster.id,
            'center': cluster.center.tolist(),
            'members': members
        })

    return result
