"""
Loading, labeling and writing customer tables.

Also provides a synthetic customer dataset for demos and tests.
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence

from smartseg.math.profile import profiles_to_frame
from smartseg.utils.general import RandomSource, make_rng

logger = logging.getLogger(__name__)

SEGMENT_COLUMN = 'Segment'

SAMPLE_FEATURES = ['Recency', 'Frequency', 'Monetary', 'Tenure']

# (share of customers, {feature: (low, high)}) per archetype
SAMPLE_ARCHETYPES = [
    (0.2, {'Recency': (0, 30), 'Frequency': (20, 80), 'Monetary': (500, 2500), 'Tenure': (24, 60)}),     # high value
    (0.4, {'Recency': (30, 150), 'Frequency': (5, 35), 'Monetary': (50, 550), 'Tenure': (6, 54)}),       # mid
    (0.4, {'Recency': (120, 485), 'Frequency': (0, 5), 'Monetary': (10, 210), 'Tenure': (0, 12)}),       # low
]


def read_table(filepath: str) -> pd.DataFrame:
    """
    Load a customer table from a CSV file.

    Args:
        filepath: Path to the CSV file (first line is the header)

    Returns:
        DataFrame with pandas-inferred column types
    """
    table = pd.read_csv(filepath, skip_blank_lines=True)
    logger.info(f"Loaded {len(table)} rows with columns {list(table.columns)} from {filepath}")
    return table


def label_table(table: pd.DataFrame,
                labels: Sequence[int],
                column: str = SEGMENT_COLUMN) -> pd.DataFrame:
    """
    Annotate each row of a table with its segment label.

    Args:
        table: Original table
        labels: Segment label per row
        column: Name of the label column

    Returns:
        Copy of the table with the label column added
    """
    if len(labels) != len(table):
        raise ValueError(f"Got {len(labels)} labels for a table of {len(table)} rows")

    labeled = table.copy()
    labeled[column] = np.asarray(labels, dtype=int)
    return labeled


def write_labeled(table: pd.DataFrame,
                  labels: Sequence[int],
                  filepath: str) -> None:
    """
    Write the labeled table to a CSV file.

    Args:
        table: Original table
        labels: Segment label per row
        filepath: Output path
    """
    label_table(table, labels).to_csv(filepath, index=False)
    logger.info(f"Wrote {len(table)} labeled rows to {filepath}")


def write_profiles(profiles: List[Dict[str, Any]],
                   filepath: str,
                   features: Optional[Sequence[str]] = None) -> None:
    """
    Write segment profiles to a CSV file.

    Args:
        profiles: Output of segment_profiles
        filepath: Output path
        features: Feature names, used for the header when there are no profiles
    """
    profiles_to_frame(profiles, features).to_csv(filepath, index=False)
    logger.info(f"Wrote {len(profiles)} segment profiles to {filepath}")


def generate_sample(n: int = 400, rng: RandomSource = None) -> pd.DataFrame:
    """
    Generate a synthetic customer table.

    Customers are drawn from three archetypes (high value, mid, low) with
    uniform feature values inside each archetype's ranges.

    Args:
        n: Number of customers
        rng: Random generator or seed

    Returns:
        DataFrame with CustomerID, Recency, Frequency, Monetary and Tenure
    """
    rng = make_rng(rng)

    shares = np.array([share for share, _ in SAMPLE_ARCHETYPES])
    archetypes = rng.choice(len(SAMPLE_ARCHETYPES), size=n, p=shares)

    columns = {'CustomerID': [f"CUST_{i + 1}" for i in range(n)]}
    for feature in SAMPLE_FEATURES:
        low = np.array([ranges[feature][0] for _, ranges in SAMPLE_ARCHETYPES])[archetypes]
        high = np.array([ranges[feature][1] for _, ranges in SAMPLE_ARCHETYPES])[archetypes]
        columns[feature] = np.round(rng.uniform(low, high), 2)

    return pd.DataFrame(columns)
