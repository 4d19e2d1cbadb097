"""
Table input and output for smartseg.
"""

from smartseg.data.loader import (
    read_table, label_table, write_labeled, write_profiles, generate_sample
)
