"""
Segmentation pipeline for smartseg.

This module ties the engine together: it extracts the feature matrix
from a customer table, standardizes it, clusters and projects the
standardized matrix and profiles the resulting segments.
"""

import time
import logging
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence

from smartseg.components.config import Config, ConfigManager
from smartseg.errors import InvalidConfiguration
from smartseg.math.clusters import KMeansState, kmeans, cluster_sizes, validate_kmeans_args
from smartseg.math.feature_matrix import FeatureMatrix, numeric_columns
from smartseg.math.pca import pca_project
from smartseg.math.profile import segment_profiles
from smartseg.math.standardize import standardize
from smartseg.utils.general import RandomSource, distinct, make_rng, to_builtin

logger = logging.getLogger(__name__)

N_COMPONENTS = 2


class SegmentationResult:
    """
    Output of one segmentation run.
    """

    def __init__(self,
                features: List[str],
                row_names: List[Any],
                standardization: Dict[str, np.ndarray],
                clustering: KMeansState,
                pca: Dict[str, np.ndarray],
                profiles: List[Dict[str, Any]]):
        """
        Initialize a result.

        Args:
            features: Feature columns used
            row_names: Row name per labeled row
            standardization: Output of standardize (data, means, stds)
            clustering: K-means state
            pca: Output of pca_project
            profiles: Output of segment_profiles
        """
        self.features = features
        self.row_names = row_names
        self.standardization = standardization
        self.clustering = clustering
        self.pca = pca
        self.profiles = profiles

    @property
    def labels(self) -> np.ndarray:
        """Segment label per row."""
        return self.clustering.labels

    @property
    def centroids(self) -> np.ndarray:
        """Centroids in the standardized feature space."""
        return self.clustering.centroids

    @property
    def scores(self) -> np.ndarray:
        """2-D projection coordinates per row."""
        return self.pca['scores']

    @property
    def explained(self) -> np.ndarray:
        """Explained-variance ratio per projection component."""
        return self.pca['explained']

    @property
    def counts(self) -> List[int]:
        """Number of rows per segment."""
        return cluster_sizes(self.labels, self.clustering.k)

    def centroids_original(self) -> np.ndarray:
        """
        Centroids mapped back to the original feature units.

        Returns:
            Centroid matrix (k x n_features)
        """
        if self.clustering.k == 0:
            return self.centroids.copy()
        return self.centroids * self.standardization['stds'] + self.standardization['means']

    def projection_points(self) -> List[Dict[str, Any]]:
        """
        Projection coordinates with their segment, one dictionary per row.

        Returns:
            List of {'x', 'y', 'segment'} dictionaries
        """
        return [{'x': float(x), 'y': float(y), 'segment': int(label)}
                for (x, y), label in zip(self.scores, self.labels)]

    def to_dict(self, include_rows: bool = False) -> Dict[str, Any]:
        """
        Convert the result to a JSON-friendly dictionary.

        Args:
            include_rows: Also include per-row labels (in row order, as
                {'id', 'segment'} entries) and projection points

        Returns:
            Result dictionary
        """
        result = {
            'features': self.features,
            'n_rows': len(self.labels),
            'k': self.clustering.k,
            'iterations': self.clustering.iterations,
            'converged': self.clustering.converged,
            'inertia': self.clustering.inertia,
            'counts': self.counts,
            'centroids': self.centroids_original(),
            'explained_variance': self.explained,
            'profiles': self.profiles
        }

        if include_rows:
            result['labels'] = [{'id': name, 'segment': int(label)}
                                for name, label in zip(self.row_names, self.labels)]
            result['points'] = self.projection_points()

        return to_builtin(result)


class Segmentation:
    """
    A segmentation request over a customer table.
    """

    def __init__(self,
                table: pd.DataFrame,
                features: Optional[Sequence[str]] = None,
                k: Optional[int] = None,
                config: Optional[Config] = None,
                id_column: Optional[str] = None):
        """
        Initialize a segmentation.

        Args:
            table: Customer table
            features: Feature columns (defaults to the configured features,
                then to the first numeric columns of the table)
            k: Number of segments (defaults to the configured k)
            config: Configuration (defaults to the shared configuration)
            id_column: Column holding customer ids, excluded from default features
        """
        self.config = config or ConfigManager.get_config()
        self.table = table
        self.id_column = id_column
        self.k = k if k is not None else self.config.get('segmentation.k')
        self.features = distinct(features) if features else self._default_features()

    def _default_features(self) -> List[str]:
        """
        Choose feature columns when none were given.

        Returns:
            Configured features, or the first numeric columns of the table
        """
        configured = self.config.get('segmentation.features') or []
        if configured:
            return distinct(configured)

        limit = self.config.get('segmentation.max-default-features')
        candidates = [col for col in numeric_columns(self.table) if col != self.id_column]
        return candidates[:limit]

    def feature_matrix(self) -> FeatureMatrix:
        """
        Extract the feature matrix from the table.

        Returns:
            FeatureMatrix with the selected features
        """
        return FeatureMatrix.from_table(self.table, self.features, self.id_column)

    def validate(self, n_rows: Optional[int] = None) -> None:
        """
        Check that the request can be honored.

        Args:
            n_rows: Number of rows (defaults to the table length)

        Raises:
            InvalidConfiguration: If fewer than two features are selected,
                or k is out of range for the number of rows
        """
        n_rows = len(self.table) if n_rows is None else n_rows
        if n_rows == 0:
            return

        if len(self.features) < N_COMPONENTS:
            raise InvalidConfiguration(
                f"Select at least {N_COMPONENTS} numeric features, got {len(self.features)}: {self.features}")

        validate_kmeans_args(n_rows, self.k, self.config.get('segmentation.max-iters'))

    def run(self, rng: RandomSource = None) -> SegmentationResult:
        """
        Run the full pipeline.

        Args:
            rng: Random generator or seed (defaults to the configured seed)

        Returns:
            SegmentationResult
        """
        start_time = time.time()
        rng = make_rng(rng if rng is not None else self.config.get('random.seed'))

        fmat = self.feature_matrix()
        self.validate(len(fmat))

        logger.info(f"Segmenting {len(fmat)} rows on {self.features} with k={self.k}")

        standardization = standardize(fmat.values)
        logger.info(f"[{time.time() - start_time:.2f}s] Standardized features")

        clustering = kmeans(
            standardization['data'],
            self.k,
            self.config.get('segmentation.max-iters'),
            rng
        )
        logger.info(f"[{time.time() - start_time:.2f}s] K-means finished after {clustering.iterations} iterations "
                    f"(converged={clustering.converged})")

        pca = pca_project(
            standardization['data'],
            N_COMPONENTS,
            self.config.get('pca.iters'),
            rng,
            self.config.get('pca.epsilon')
        )
        logger.info(f"[{time.time() - start_time:.2f}s] Projection explained variance {np.round(pca['explained'], 4).tolist()}")

        profiles = segment_profiles(self.table, clustering.labels, self.features,
                                    self.config.get('profile.decimals'))
        logger.info(f"[{time.time() - start_time:.2f}s] Profiled {len(profiles)} segments")

        return SegmentationResult(
            self.features,
            fmat.rownames(),
            standardization,
            clustering,
            pca,
            profiles
        )
