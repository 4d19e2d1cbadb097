"""
Tests for the segment profiling module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from smartseg.errors import InvalidConfiguration
from smartseg.math.profile import segment_profiles, profiles_to_frame


@pytest.fixture
def table():
    return pd.DataFrame({
        'CustomerID': ['a', 'b', 'c', 'd', 'e'],
        'Recency': [10.0, 20.0, 300.0, 400.0, 500.0],
        'Monetary': [1000.0, 2000.0, 10.0, 20.0, 30.0]
    })


class TestSegmentProfiles:
    """Tests for the segment_profiles function."""
    
    def test_counts_and_means(self, table):
        """Each segment reports its size and feature means."""
        profiles = segment_profiles(table, [0, 0, 1, 1, 1], ['Recency', 'Monetary'])
        
        assert profiles == [
            {'Segment': 0, 'Count': 2, 'Recency_mean': 15.0, 'Monetary_mean': 1500.0},
            {'Segment': 1, 'Count': 3, 'Recency_mean': 400.0, 'Monetary_mean': 20.0}
        ]
    
    def test_count_conservation(self, table):
        """Counts over all segments add up to the number of rows."""
        labels = [2, 0, 2, 1, 0]
        profiles = segment_profiles(table, labels, ['Recency'])
        
        assert sum(p['Count'] for p in profiles) == len(table)
        assert [p['Segment'] for p in profiles] == [0, 1, 2]
    
    def test_empty_segment(self, table):
        """Labels with no rows below the maximum still get a zero entry."""
        profiles = segment_profiles(table, [0, 0, 0, 2, 2], ['Recency'])
        
        assert len(profiles) == 3
        assert profiles[1] == {'Segment': 1, 'Count': 0, 'Recency_mean': 0.0}
    
    def test_rounding(self, table):
        """Means can be rounded for display."""
        profiles = segment_profiles(table, [0, 0, 0, 1, 1], ['Recency'], decimals=3)
        
        assert profiles[0]['Recency_mean'] == 110.0
        
        thirds = pd.DataFrame({'x': [1.0, 0.0, 0.0]})
        assert segment_profiles(thirds, [0, 0, 0], ['x'], decimals=3)[0]['x_mean'] == 0.333
    
    def test_non_numeric_cells_count_as_zero(self):
        """Missing and non-numeric values are averaged as 0."""
        table = pd.DataFrame({'x': [4.0, None, 'n/a', 8.0]})
        
        profiles = segment_profiles(table, [0, 0, 0, 0], ['x'])
        
        assert profiles[0]['x_mean'] == 3.0
    
    def test_empty_labels(self):
        """No labels gives no profiles."""
        assert segment_profiles(pd.DataFrame({'x': []}), [], ['x']) == []
    
    def test_length_mismatch(self, table):
        """Labels must line up with the table rows."""
        with pytest.raises(ValueError):
            segment_profiles(table, [0, 1], ['Recency'])
    
    def test_unknown_feature(self, table):
        """Unknown feature columns are rejected."""
        with pytest.raises(InvalidConfiguration):
            segment_profiles(table, [0] * 5, ['Tenure'])


class TestProfilesToFrame:
    """Tests for the profiles_to_frame function."""
    
    def test_frame(self, table):
        """Profiles become one DataFrame row per segment."""
        frame = profiles_to_frame(segment_profiles(table, [0, 1, 1, 1, 1], ['Recency']))
        
        assert list(frame.columns) == ['Segment', 'Count', 'Recency_mean']
        assert frame['Count'].tolist() == [1, 4]
    
    def test_empty_frame(self):
        """An empty profile list keeps the expected header."""
        frame = profiles_to_frame([], ['Recency', 'Monetary'])
        
        assert len(frame) == 0
        assert list(frame.columns) == ['Segment', 'Count', 'Recency_mean', 'Monetary_mean']
