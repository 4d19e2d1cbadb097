"""
Utility functions for smartseg.
"""
