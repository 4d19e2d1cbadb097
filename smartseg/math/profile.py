"""
Segment profiling for smartseg.

Summarizes each segment by its size and the mean of each requested
feature over the segment's rows, in the original (unstandardized) units.
"""

import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence

from smartseg.errors import InvalidConfiguration
from smartseg.math.clusters import cluster_sizes
from smartseg.math.feature_matrix import coerce_numeric
from smartseg.utils.general import round_to


def segment_profiles(table: pd.DataFrame,
                     labels: Sequence[int],
                     features: Sequence[str],
                     decimals: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Compute one profile per segment label from 0 to max(label).

    Args:
        table: Original table, one row per label
        labels: Segment label per row
        features: Feature columns to average
        decimals: Round means to this many decimals (no rounding if None)

    Returns:
        List of dictionaries with 'Segment', 'Count' and '<feature>_mean'
        keys; empty segments have Count 0 and means of 0
    """
    labels = np.asarray(labels, dtype=int)
    if labels.size == 0:
        return []

    if len(table) != labels.size:
        raise ValueError(f"Got {labels.size} labels for a table of {len(table)} rows")

    missing = [f for f in features if f not in table.columns]
    if missing:
        raise InvalidConfiguration(f"Unknown feature columns: {missing}")

    counts = cluster_sizes(labels)
    values = {f: coerce_numeric(table[f]) for f in features}

    profiles = []
    for segment, count in enumerate(counts):
        mask = labels == segment
        profile = {'Segment': segment, 'Count': int(count)}
        for f in features:
            mean = float(np.mean(values[f][mask])) if count else 0.0
            profile[f'{f}_mean'] = round_to(mean, decimals) if decimals is not None else mean
        profiles.append(profile)

    return profiles


def profiles_to_frame(profiles: List[Dict[str, Any]],
                      features: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Render segment profiles as a DataFrame.

    Args:
        profiles: Output of segment_profiles
        features: Feature names, used to fix the column order when
            profiles is empty

    Returns:
        DataFrame with one row per segment
    """
    if profiles:
        return pd.DataFrame(profiles)

    columns = ['Segment', 'Count'] + [f'{f}_mean' for f in (features or [])]
    return pd.DataFrame(columns=columns)
