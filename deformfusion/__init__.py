"""Deformation graphs, sparse Jacobians, a normal-equation solver and small utilities for RGB-D surfel mapping."""

__version__ = "0.1.0"

__all__ = [
    "cholesky",
    "graph",
    "graph_jacobian",
    "img",
    "jacobian",
    "odometry",
    "parse",
    "uniform",
    "vertex",
]