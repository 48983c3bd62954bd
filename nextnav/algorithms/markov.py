"""
Markov chain algorithm - first-order page transition model per user.
"""

import logging
from collections import defaultdict
from typing import Optional, Sequence

from ..models import NavigationEvent, SuggestedItem
from ..interfaces import ProgressReporter

logger = logging.getLogger(__name__)


class MarkovChainAlgorithm:
    """
    First-order Markov model over page transitions.

    Each user gets their own transition table, learned from the
    previous -> current page pairs recorded on navigation events.
    Predictions need the page the user is currently on.
    """

    name = "MarkovChain"
    DEFAULT_WEIGHT = 1.5

    def __init__(self, weight: float = DEFAULT_WEIGHT):
        """
        Initialize Markov algorithm.

        Args:
            weight: Multiplier applied to transition probabilities
        """
        self.weight = weight
        # transitions[user_id][source_page] = {destination_page: count}
        self.transitions: dict[str, dict[str, dict[str, int]]] = {}
        self.total_transitions = 0

    async def train(self, events: Sequence[NavigationEvent], reporter: ProgressReporter) -> None:
        """
        Learn transition counts from the full history.

        Events are processed in timestamp order regardless of the order
        they are handed in.

        Args:
            events: All recorded navigation events
            reporter: Progress sink
        """
        reporter.report_progress(self.name, "Computing transitions", 0)

        transitions: dict[str, dict[str, dict[str, int]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(int))
        )
        total = 0
        for event in sorted(events, key=lambda e: e.timestamp):
            if not event.previous_page_or_feature:
                continue
            source = event.previous_page_or_feature
            destination = event.current_page_or_feature
            transitions[event.user_id][source][destination] += 1
            total += 1

        self.transitions = {
            user: {source: dict(dests) for source, dests in sources.items()}
            for user, sources in transitions.items()
        }
        self.total_transitions = total

        logger.info(f"Markov model trained: {len(self.transitions)} users, {total} transitions")
        reporter.report_progress(
            self.name, "Transitions computed", 100, True, f"Processed {len(events)} events."
        )

    async def predict(
        self,
        user_id: str,
        current_context: Optional[str],
        max_results: int,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]:
        """
        Predict next pages from the user's current page.

        Args:
            user_id: User to predict for
            current_context: Page the user is on (required)
            max_results: Number of suggestions to return
            context_data: Unused

        Returns:
            Suggestions ordered by descending transition count
        """
        if not current_context or user_id not in self.transitions:
            return []

        next_pages = self.transitions[user_id].get(current_context)
        if not next_pages:
            return []

        total = sum(next_pages.values())
        if total == 0:
            return []

        return [
            SuggestedItem(name=page, score=(count / total) * self.weight, reason=self.name)
            for page, count in sorted(next_pages.items(), key=lambda x: -x[1])[:max(max_results, 0)]
        ]

    def get_stats(self) -> dict:
        """Get model statistics."""
        n_sources = sum(len(sources) for sources in self.transitions.values())
        return {
            "weight": self.weight,
            "n_users": len(self.transitions),
            "n_source_pages": n_sources,
            "total_transitions": self.total_transitions,
        }
