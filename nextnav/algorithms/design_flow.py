"""
Design-flow algorithm - static "from here, users usually go there" rules.
"""

import logging
from typing import Optional, Sequence

from ..models import NavigationEvent, SuggestedItem
from ..interfaces import DesignFlowRulesProvider, ProgressReporter

logger = logging.getLogger(__name__)


class DesignFlowAlgorithm:
    """
    Suggest pages that the application's designers linked to the current page.

    Nothing is learned from events; training only refreshes the rules from
    the provider.
    """

    name = "DesignFlow"
    DEFAULT_WEIGHT = 0.7

    def __init__(self, rules_provider: DesignFlowRulesProvider, weight: float = DEFAULT_WEIGHT):
        self.rules_provider = rules_provider
        self.weight = weight
        # casefolded context -> related pages; None until the first training cycle
        self.rules: Optional[dict[str, list[str]]] = None

    async def train(self, events: Sequence[NavigationEvent], reporter: ProgressReporter) -> None:
        reporter.report_progress(self.name, "Loading design-flow rules", 0)

        rules = await self.rules_provider.get_design_flow_rules()
        self.rules = {
            context.casefold(): list(pages) for context, pages in (rules or {}).items()
        }

        logger.info(f"Design-flow rules loaded: {len(self.rules)} contexts")
        reporter.report_progress(
            self.name, "Design-flow rules loaded", 100, True, f"Loaded {len(self.rules)} rules."
        )

    async def predict(
        self,
        user_id: str,
        current_context: Optional[str],
        max_results: int,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]:
        if self.rules is None or not current_context:
            return []

        related = self.rules.get(current_context.casefold())
        if not related:
            return []

        # Every listed page gets the same fixed score
        return [
            SuggestedItem(name=page, score=1.0 * self.weight, reason=self.name)
            for page in related
        ]

    def get_stats(self) -> dict:
        return {
            "weight": self.weight,
            "loaded": self.rules is not None,
            "n_contexts": len(self.rules) if self.rules else 0,
        }
