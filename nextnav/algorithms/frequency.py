"""
Frequency algorithm - a personal "most used" list.
"""

import logging
from collections import defaultdict
from typing import Optional, Sequence

from ..models import NavigationEvent, SuggestedItem
from ..interfaces import ProgressReporter

logger = logging.getLogger(__name__)


class FrequencyAlgorithm:
    """
    Count visits per (user, page) and suggest the most visited pages.

    Context-free: the current page and context data are ignored.
    """

    name = "Frequency"
    DEFAULT_WEIGHT = 1.0

    def __init__(self, weight: float = DEFAULT_WEIGHT):
        self.weight = weight
        # frequencies[user_id] = {page: visit_count}
        self.frequencies: dict[str, dict[str, int]] = {}
        self.total_events = 0

    async def train(self, events: Sequence[NavigationEvent], reporter: ProgressReporter) -> None:
        """Rebuild visit counts from the full history."""
        reporter.report_progress(self.name, "Counting page visits", 0)

        frequencies: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        processed = 0
        for event in events:
            if not event.user_id:
                continue
            frequencies[event.user_id][event.current_page_or_feature] += 1
            processed += 1

        self.frequencies = {user: dict(pages) for user, pages in frequencies.items()}
        self.total_events = processed

        logger.info(f"Frequency model trained: {len(self.frequencies)} users, {processed} events")
        reporter.report_progress(
            self.name, "Visit counts ready", 100, True, f"Processed {processed} events."
        )

    async def predict(
        self,
        user_id: str,
        current_context: Optional[str],
        max_results: int,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]:
        pages = self.frequencies.get(user_id)
        if not pages:
            return []

        ranked = sorted(pages.items(), key=lambda x: -x[1])[:max(max_results, 0)]
        return [
            SuggestedItem(name=page, score=count * self.weight, reason=self.name)
            for page, count in ranked
        ]

    def get_stats(self) -> dict:
        """Get model statistics."""
        return {
            "weight": self.weight,
            "n_users": len(self.frequencies),
            "total_events": self.total_events,
        }
