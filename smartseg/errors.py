"""
Error types for smartseg.
"""


class InvalidConfiguration(ValueError):
    """
    Raised when a segmentation is requested with parameters the engine
    cannot honor, e.g. more clusters than rows or fewer than two features.
    """
