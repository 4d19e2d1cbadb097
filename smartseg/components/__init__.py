"""
System components for smartseg.

This module provides system-level components such as configuration.
"""

from smartseg.components.config import Config, ConfigManager
