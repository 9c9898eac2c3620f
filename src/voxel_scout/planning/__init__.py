"""Movement planning on top of digested scans."""

from .march import MarchOutcome, MarchPlanner, MovementPlan, moves_since_scan, scan_command

__all__ = ["MarchOutcome", "MarchPlanner", "MovementPlan", "moves_since_scan", "scan_command"]
