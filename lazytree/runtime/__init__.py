"""Terminal runtime: persisted preferences and the interactive loop."""

from __future__ import annotations

from .loop import build_frame, run_tree_view, status_line

__all__ = ["build_frame", "run_tree_view", "status_line"]
