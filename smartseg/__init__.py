"""
SmartSeg package for customer segmentation.

Standardizes selected numeric customer features, partitions customers
with K-means, projects them to two dimensions with power-iteration PCA
and summarizes each segment.
"""

__version__ = '0.1.0'

from smartseg.errors import InvalidConfiguration
from smartseg.segmentation import Segmentation, SegmentationResult, SegmentationRunner
from smartseg.components.config import Config, ConfigManager
