"""Terrain access and the in-process grid world."""

from .grid import GridWorldAdapter, LayeredTerrain, TerrainOracle

__all__ = ["GridWorldAdapter", "LayeredTerrain", "TerrainOracle"]
