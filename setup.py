"""
Setup script for smartseg package.
"""

from setuptools import setup, find_packages

setup(
    name="smartseg",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        
        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "tests": ["pytest>=6.0.0", "scikit-learn>=1.0.0"],
    },
    entry_points={
        'console_scripts': [
            'smartseg=smartseg.__main__:main',
        ],
    },
    author="SmartSeg Team",
    description="Customer segmentation engine: standardization, K-means, power-iteration PCA and segment profiles",
    keywords="segmentation, clustering, kmeans, pca, customers",
    python_requires=">=3.8",
)
