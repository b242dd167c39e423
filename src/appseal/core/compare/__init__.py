"""Artifact comparison --- classify trusted vs. untrusted entries."""

from appseal.core.compare.comparator import compare
from appseal.core.compare.models import ComparisonResult, HashPair

__all__ = ["ComparisonResult", "HashPair", "compare"]
