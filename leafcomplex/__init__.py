"""Leaf silhouette shape-complexity analysis."""

__version__ = "0.1.0"
