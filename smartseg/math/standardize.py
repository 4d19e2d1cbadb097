"""
Column-wise z-score standardization for smartseg.
"""

import numpy as np
from typing import Dict


def standardize(data: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Standardize each column of a matrix to zero mean and unit variance.

    The standard deviation uses the population form
    ``sqrt(mean((x - mean(x))**2))``. Constant columns are divided by 1
    instead of 0, so they come out as all zeros.

    Args:
        data: Matrix of shape (n_rows, n_cols)

    Returns:
        Dictionary with 'data' (standardized matrix), 'means' and 'stds'
        (the divisors actually used)

    Raises:
        ValueError: If data is a non-empty array that is not 2-D
    """
    data = np.asarray(data, dtype=float)

    if data.size and data.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got an array of shape {data.shape}")

    if data.ndim != 2 or data.shape[0] == 0:
        n_cols = data.shape[1] if data.ndim == 2 else 0
        return {
            'data': np.zeros((0, n_cols)),
            'means': np.zeros(0),
            'stds': np.zeros(0)
        }

    means = data.mean(axis=0)
    centered = data - means

    # Constant columns standardize to exact zeros
    constant = np.all(data == data[0], axis=0)
    centered[:, constant] = 0.0

    stds = np.sqrt(np.mean(centered ** 2, axis=0))
    stds[constant | (stds == 0)] = 1.0

    return {
        'data': centered / stds,
        'means': means,
        'stds': stds
    }
