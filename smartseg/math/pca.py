"""
PCA (Principal Component Analysis) implementation for smartseg.

This module provides a two-component PCA for visualizing segments. The
leading eigenpairs of the covariance matrix are found by power iteration,
with deflation between components.
"""

import logging
import numpy as np
from typing import Dict, Optional, Tuple

from smartseg.errors import InvalidConfiguration
from smartseg.utils.general import RandomSource, make_rng

logger = logging.getLogger(__name__)


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector (a zero vector is returned unchanged)
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def vector_length(v: np.ndarray) -> float:
    """
    Calculate the length (norm) of a vector.

    Args:
        v: Vector

    Returns:
        Vector length
    """
    return float(np.linalg.norm(v))


def covariance_matrix(centered: np.ndarray) -> np.ndarray:
    """
    Sample covariance of column-centered data.

    Uses the n-1 divisor, or 1 when there is a single row.

    Args:
        centered: Column-centered data matrix

    Returns:
        Covariance matrix of shape (n_cols, n_cols)
    """
    n_rows = centered.shape[0]
    return centered.T @ centered / ((n_rows - 1) or 1)


def rand_starting_vec(n_cols: int, rng: RandomSource = None) -> np.ndarray:
    """
    Generate a random starting vector for power iteration.

    Args:
        n_cols: Vector length
        rng: Random generator or seed

    Returns:
        Vector with entries uniform in [0, 1)
    """
    return make_rng(rng).random(n_cols)


def power_iteration(matrix: np.ndarray,
                   iters: int = 200,
                   start_vector: Optional[np.ndarray] = None,
                   rng: RandomSource = None) -> Tuple[float, np.ndarray]:
    """
    Find the dominant eigenpair of a symmetric matrix by power iteration.

    Runs exactly ``iters`` multiply-and-normalize steps; there is no early
    exit. The eigenvalue is the Rayleigh quotient of the final vector.

    Args:
        matrix: Square symmetric matrix
        iters: Number of iterations
        start_vector: Initial vector (defaults to a random one)
        rng: Random generator used when no start vector is given

    Returns:
        Tuple of (eigenvalue, unit eigenvector)
    """
    if start_vector is None:
        v = rand_starting_vec(matrix.shape[0], rng)
    else:
        v = np.array(start_vector, dtype=float)

    for _ in range(iters):
        w = matrix @ v
        v = w / (vector_length(w) or 1.0)

    eigval = float(v @ matrix @ v)
    return eigval, v


def deflate(matrix: np.ndarray, eigval: float, eigvec: np.ndarray) -> np.ndarray:
    """
    Remove an eigen-component from a matrix.

    Args:
        matrix: Square matrix
        eigval: Eigenvalue to remove
        eigvec: Corresponding unit eigenvector

    Returns:
        matrix - eigval * outer(eigvec, eigvec)
    """
    return matrix - eigval * np.outer(eigvec, eigvec)


def pca_project(data: np.ndarray,
               n_comps: int = 2,
               iters: int = 200,
               rng: RandomSource = None,
               epsilon: float = 1e-9) -> Dict[str, np.ndarray]:
    """
    Project data onto its leading principal components.

    Args:
        data: Data matrix of shape (n_rows, n_cols), n_cols >= n_comps
        n_comps: Number of components to find
        iters: Power iteration steps per component
        rng: Random generator or seed for the starting vectors
        epsilon: Added to the eigenvalue sum when computing ratios

    Returns:
        Dictionary with 'center', 'comps' (n_comps x n_cols),
        'eigenvalues', 'explained' (variance ratios) and 'scores'
        (n_rows x n_comps)

    Raises:
        InvalidConfiguration: If there are fewer columns than components
        ValueError: If data is a non-empty array that is not 2-D
    """
    data = np.asarray(data, dtype=float)

    if data.size and data.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got an array of shape {data.shape}")

    if data.ndim != 2 or data.shape[0] == 0:
        n_cols = data.shape[1] if data.ndim == 2 else 0
        return {
            'center': np.zeros(n_cols),
            'comps': np.zeros((0, n_cols)),
            'eigenvalues': np.zeros(0),
            'explained': np.zeros(0),
            'scores': np.zeros((0, n_comps))
        }

    n_cols = data.shape[1]
    if n_cols < n_comps:
        raise InvalidConfiguration(
            f"Projection to {n_comps} components needs at least {n_comps} feature columns, got {n_cols}")

    rng = make_rng(rng)

    # Center the data
    center = np.mean(data, axis=0)
    cntrd_data = data - center

    cov = covariance_matrix(cntrd_data)

    eigvals = []
    comps = []
    for i in range(n_comps):
        eigval, vec = power_iteration(cov, iters, rng=rng)
        eigvals.append(eigval)
        comps.append(vec)

        if i < n_comps - 1:  # No need to deflate after the last component
            cov = deflate(cov, eigval, vec)

    comps = np.array(comps)

    # Deflation can leave tiny negative eigenvalues
    eigvals = np.clip(np.array(eigvals), 0.0, None)
    explained = eigvals / (np.sum(eigvals) + epsilon)

    logger.debug(f"PCA eigenvalues {eigvals.tolist()}, explained {explained.tolist()}")

    return {
        'center': center,
        'comps': comps,
        'eigenvalues': eigvals,
        'explained': explained,
        'scores': cntrd_data @ comps.T
    }
