"""
Numeric engine for smartseg: standardization, K-means, PCA and profiling.
"""
