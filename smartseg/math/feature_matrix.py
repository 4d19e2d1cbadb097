"""
Feature matrix implementation for smartseg.

This module provides a fixed-width numeric matrix with named rows and
columns. It is the boundary between loosely typed customer tables and the
numeric engine: everything past this point works on float arrays.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional, Any, Sequence, Union

from smartseg.errors import InvalidConfiguration
from smartseg.utils.general import distinct

logger = logging.getLogger(__name__)


def numeric_columns(table: pd.DataFrame) -> List[str]:
    """
    List the numeric columns of a table, in table order.

    Args:
        table: Input table

    Returns:
        Names of columns with a numeric (non-boolean) dtype
    """
    return [col for col in table.columns
            if pd.api.types.is_numeric_dtype(table[col])
            and not pd.api.types.is_bool_dtype(table[col])]


def coerce_numeric(values: Union[pd.Series, Sequence[Any]]) -> np.ndarray:
    """
    Coerce values to floats, treating missing and non-numeric cells as 0.

    Args:
        values: Column values

    Returns:
        Float array
    """
    series = pd.to_numeric(pd.Series(values), errors='coerce')
    return series.fillna(0.0).to_numpy(dtype=float)


class FeatureMatrix:
    """
    A rectangular numeric matrix with named rows and columns.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, Sequence[Sequence[float]]]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a FeatureMatrix.

        Args:
            matrix: Row-major numeric data
            rownames: List of row names (defaults to positional indices)
            colnames: List of column names (defaults to positional indices)
        """
        if matrix is None:
            n_cols = len(colnames) if colnames is not None else 0
            values = np.zeros((0, n_cols), dtype=float)
        else:
            values = np.array(matrix, dtype=float)
            if values.ndim == 1 and values.size == 0:
                n_cols = len(colnames) if colnames is not None else 0
                values = values.reshape(0, n_cols)
            elif values.ndim != 2:
                raise ValueError(f"Feature matrix must be two-dimensional, got shape {values.shape}")

        n_rows, n_cols = values.shape

        if rownames is None:
            rownames = list(range(n_rows))
        if colnames is None:
            colnames = list(range(n_cols))

        if len(rownames) != n_rows:
            raise ValueError(f"Expected {n_rows} row names, got {len(rownames)}")
        if len(colnames) != n_cols:
            raise ValueError(f"Expected {n_cols} column names, got {len(colnames)}")

        values.flags.writeable = False
        self._values = values
        self._rownames = list(rownames)
        self._colnames = list(colnames)

    @classmethod
    def from_table(cls,
                   table: pd.DataFrame,
                   features: Sequence[str],
                   id_column: Optional[str] = None) -> 'FeatureMatrix':
        """
        Build a FeatureMatrix from selected columns of a table.

        Missing and non-numeric cells become 0.

        Args:
            table: Input table
            features: Names of the columns to use, in order
            id_column: Optional column holding row names

        Returns:
            FeatureMatrix with one row per table row
        """
        features = distinct(features)
        missing = [f for f in features if f not in table.columns]
        if missing:
            raise InvalidConfiguration(f"Unknown feature columns: {missing}")

        if features:
            values = np.column_stack([coerce_numeric(table[f]) for f in features])
        else:
            values = np.zeros((len(table), 0), dtype=float)

        if id_column is not None and id_column in table.columns:
            rownames = table[id_column].tolist()
        else:
            rownames = list(range(len(table)))

        logger.debug(f"Built feature matrix {values.shape} from columns {features}")
        return cls(values, rownames, list(features))

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a read-only numpy array."""
        return self._values

    @property
    def shape(self):
        """Get the (rows, columns) shape."""
        return self._values.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._rownames.copy()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._colnames.copy()

    def with_values(self, values: np.ndarray) -> 'FeatureMatrix':
        """
        Create a new FeatureMatrix with the same names and new values.

        Args:
            values: Replacement data of the same shape

        Returns:
            A new FeatureMatrix
        """
        values = np.asarray(values, dtype=float)
        if values.shape != self.shape:
            raise ValueError(f"Shape mismatch: {values.shape} != {self.shape}")
        return FeatureMatrix(values, self._rownames, self._colnames)

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert to a pandas DataFrame.

        Returns:
            DataFrame indexed by row names
        """
        return pd.DataFrame(self._values, index=self._rownames, columns=self._colnames)

    def __len__(self) -> int:
        """Return the number of rows."""
        return self._values.shape[0]

    def __repr__(self) -> str:
        """String representation of the matrix."""
        return f"FeatureMatrix(rows={self.shape[0]}, cols={self.shape[1]})"
