"""
Segmentation pipeline for smartseg.

This module provides the end-to-end segmentation of a customer table
and a runner that executes segmentations on worker threads.
"""

from smartseg.segmentation.segmentation import Segmentation, SegmentationResult
from smartseg.segmentation.runner import SegmentationRunner
