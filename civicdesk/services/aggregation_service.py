"""
Aggregation Service - ward-level heatmap statistics.

Groups tickets created inside a rolling time window by ward and classifies
each ward's issue density. Nothing is persisted; every call re-reads the
ticket set.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, List, Optional
import logging

from civicdesk.config.firebase import get_store
from civicdesk.core.errors import ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.heatmap import Density, TimeFilter, WardAggregate
from civicdesk.services.ticket_repository import TicketRepository
from civicdesk.utils.timeutils import subtract_months, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_WARD = "Unknown"


class AggregationService:
    """
    Heatmap builder.

    Policy constants (critical upvote threshold, density ladder) come from
    settings unless given explicitly.
    """

    def __init__(
        self,
        repository: TicketRepository,
        clock: Callable[[], datetime] = utc_now,
        critical_threshold: Optional[int] = None,
        density_critical_above: Optional[int] = None,
        density_high_above: Optional[int] = None,
        density_medium_above: Optional[int] = None,
    ):
        self.repository = repository
        self.clock = clock
        self.critical_threshold = _or_default(critical_threshold, settings.CRITICAL_UPVOTE_THRESHOLD)
        self.density_critical_above = _or_default(density_critical_above, settings.DENSITY_CRITICAL_ABOVE)
        self.density_high_above = _or_default(density_high_above, settings.DENSITY_HIGH_ABOVE)
        self.density_medium_above = _or_default(density_medium_above, settings.DENSITY_MEDIUM_ABOVE)

    def window_start(self, time_filter: TimeFilter) -> Optional[datetime]:
        """Earliest createdAt included by the filter; None for 'all'."""
        now = self.clock()
        if time_filter == TimeFilter.DAY:
            return now - timedelta(days=1)
        if time_filter == TimeFilter.WEEK:
            return now - timedelta(days=7)
        if time_filter == TimeFilter.MONTH:
            return subtract_months(now, 1)
        if time_filter == TimeFilter.QUARTER:
            return subtract_months(now, 3)
        return None

    def classify_density(self, issue_count: int) -> Density:
        if issue_count > self.density_critical_above:
            return Density.CRITICAL
        if issue_count > self.density_high_above:
            return Density.HIGH
        if issue_count > self.density_medium_above:
            return Density.MEDIUM
        return Density.LOW

    def heatmap(self, time_filter: str = "week", ward_filter: Optional[str] = "all") -> List[WardAggregate]:
        """
        Per-ward statistics for tickets inside the time window.

        Args:
            time_filter: day | week | month | quarter | all
            ward_filter: ward label, or "all"/None for every ward

        Returns:
            One WardAggregate per ward, in first-seen order (no ordering guarantee).

        Raises:
            ValidationFailed: unknown time_filter
        """
        try:
            window = TimeFilter(time_filter or TimeFilter.WEEK.value)
        except ValueError:
            allowed = ", ".join(f.value for f in TimeFilter)
            raise ValidationFailed(f"Unknown timeFilter '{time_filter}'. Allowed: {allowed}")

        tickets = self.repository.all()

        since = self.window_start(window)
        if since is not None:
            tickets = [t for t in tickets if t.created_at >= since]
        if ward_filter and ward_filter != "all":
            tickets = [t for t in tickets if t.location.ward == ward_filter]

        wards: "OrderedDict[str, WardAggregate]" = OrderedDict()
        for ticket in tickets:
            ward = ticket.location.ward or UNKNOWN_WARD
            aggregate = wards.get(ward)
            if aggregate is None:
                aggregate = wards[ward] = WardAggregate(ward=ward)
            aggregate.issue_count += 1
            if ticket.upvotes >= self.critical_threshold:
                aggregate.critical_count += 1
            aggregate.total_upvotes += ticket.upvotes
            category = ticket.category.value
            aggregate.categories[category] = aggregate.categories.get(category, 0) + 1

        for aggregate in wards.values():
            aggregate.average_upvotes = (
                aggregate.total_upvotes // aggregate.issue_count if aggregate.issue_count > 0 else 0
            )
            aggregate.density = self.classify_density(aggregate.issue_count)

        logger.debug(f"Heatmap {window.value}/{ward_filter}: {len(tickets)} tickets in {len(wards)} wards")
        return list(wards.values())


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


# Global service instance
_aggregation_service = None


def get_aggregation_service() -> AggregationService:
    """Get or create AggregationService singleton."""
    global _aggregation_service
    if _aggregation_service is None:
        _aggregation_service = AggregationService(TicketRepository(get_store()))
    return _aggregation_service
