"""
Heatmap models - derived per-ward statistics, never persisted.
"""

from pydantic import Field
from typing import Dict
from enum import Enum

from civicdesk.models.base import CamelModel


class TimeFilter(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    ALL = "all"


class Density(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class WardAggregate(CamelModel):
    ward: str
    issue_count: int = 0
    critical_count: int = 0
    total_upvotes: int = 0
    average_upvotes: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    density: Density = Density.LOW
