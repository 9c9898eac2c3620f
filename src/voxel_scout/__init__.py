"""voxel-scout: local navigation for a turn-based voxel exploration client."""
