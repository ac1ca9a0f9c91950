"""Planner configuration."""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field


class HtnSettings(BaseModel):
    """Configuration shared by the tree search and the per-tick scheduler."""

    frame_processing_limit: Optional[timedelta] = None     # Budget per tick; None = run to exhaustion
    node_branch_limit: Optional[int] = Field(default=None, ge=0)   # Max search depth
    disable_priority_sort: bool = False                     # Skip lowest-priority-first agent ordering
    tick_interval_seconds: float = Field(default=0.1, gt=0)
