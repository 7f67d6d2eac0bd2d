"""Externally triggered batch jobs."""

from .acquisition import AcquisitionJob
from .rewrite import RewriteJob

__all__ = [
    "AcquisitionJob",
    "RewriteJob",
]
