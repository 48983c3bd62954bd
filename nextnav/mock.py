"""
Mock navigation history generator for testing and development.

Generates synthetic navigation sessions based on common application journeys.
"""

import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import NavigationEvent


# Common navigation journeys
JOURNEY_TEMPLATES = {
    "review_projects": {
        "description": "User checks the dashboard and opens a project",
        "pages": ["Home", "Dashboard", "ProjectList", "ProjectDetails"],
        "completion_rate": 0.85,
    },
    "edit_project": {
        "description": "User edits a project and saves",
        "pages": ["Home", "ProjectList", "ProjectDetails", "ProjectEditor", "ProjectDetails"],
        "completion_rate": 0.70,
    },
    "reporting": {
        "description": "User builds and exports a report",
        "pages": ["Home", "Dashboard", "Reports", "ReportBuilder", "Export"],
        "completion_rate": 0.60,
    },
    "settings_change": {
        "description": "User changes preferences",
        "pages": ["Home", "Settings", "Preferences", "Settings"],
        "completion_rate": 0.90,
    },
    "support": {
        "description": "User looks for help",
        "pages": ["Home", "Help", "Contact"],
        "completion_rate": 0.50,
    },
}

DEFAULT_TEMPLATE_WEIGHTS = {
    "review_projects": 0.35,
    "edit_project": 0.25,
    "reporting": 0.20,
    "settings_change": 0.15,
    "support": 0.05,
}


def all_pages() -> list[str]:
    """Every page that appears in a journey template."""
    pages = {page for template in JOURNEY_TEMPLATES.values() for page in template["pages"]}
    return sorted(pages)


class MockNavigationGenerator:
    """Generates synthetic navigation events for testing."""

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            seed: Random seed for reproducibility
        """
        self.rng = random.Random(seed)
        self._event_counter = 0

    def generate_session(
        self,
        user_id: str,
        template_name: Optional[str] = None,
        session_id: Optional[str] = None,
        base_time: Optional[datetime] = None,
    ) -> list[NavigationEvent]:
        """
        Generate the events of a single session.

        Args:
            user_id: User the session belongs to
            template_name: Journey template to use (random if None)
            session_id: Session ID (generated if None)
            base_time: Starting timestamp (now if None)

        Returns:
            Events in timestamp order, each linked to the previous page
        """
        if template_name is None:
            template_name = self.rng.choice(list(JOURNEY_TEMPLATES.keys()))

        template = JOURNEY_TEMPLATES[template_name]
        session_id = session_id or str(uuid.uuid4())
        current_time = base_time or datetime.now(timezone.utc)

        pages = template["pages"]
        if self.rng.random() >= template["completion_rate"]:
            # Abandon the journey part way
            pages = pages[:self.rng.randint(1, max(1, len(pages) - 1))]

        events = []
        previous_page = None
        for page in pages:
            # 1s to 2min between navigations
            current_time = current_time + timedelta(seconds=self.rng.randint(1, 120))
            self._event_counter += 1
            events.append(NavigationEvent(
                event_id=f"mock_nav_{self._event_counter:08d}",
                user_id=user_id,
                current_page_or_feature=page,
                previous_page_or_feature=previous_page,
                timestamp=current_time,
                session_id=session_id,
                context_data={"journey": template_name},
            ))
            previous_page = page

        return events

    def generate_user_history(
        self,
        user_id: str,
        n_sessions: int,
        template_weights: Optional[dict[str, float]] = None,
        time_spread_hours: float = 72.0,
    ) -> list[NavigationEvent]:
        """
        Generate several sessions for one user, spread over time.

        Args:
            user_id: User identifier
            n_sessions: Number of sessions
            template_weights: Probability weights for each template
            time_spread_hours: Spread sessions over this many hours

        Returns:
            Events sorted by timestamp
        """
        template_weights = template_weights or DEFAULT_TEMPLATE_WEIGHTS
        templates = list(template_weights.keys())
        weights = [template_weights[t] for t in templates]

        base_time = datetime.now(timezone.utc) - timedelta(hours=time_spread_hours)
        events = []
        for _ in range(n_sessions):
            session_time = base_time + timedelta(hours=self.rng.random() * time_spread_hours)
            template = self.rng.choices(templates, weights=weights)[0]
            events.extend(self.generate_session(user_id, template, base_time=session_time))

        events.sort(key=lambda e: e.timestamp)
        return events

    def generate_batch(self, n_users: int, sessions_per_user: int = 5) -> list[NavigationEvent]:
        """Histories for several users, merged and sorted by timestamp."""
        events = []
        for i in range(n_users):
            events.extend(self.generate_user_history(f"user_{i:03d}", sessions_per_user))
        events.sort(key=lambda e: e.timestamp)
        return events


def generate_sample_history(n_users: int = 10, seed: int = 42) -> list[NavigationEvent]:
    """
    Convenience function to generate sample navigation history.

    Args:
        n_users: Number of users
        seed: Random seed

    Returns:
        List of NavigationEvents
    """
    generator = MockNavigationGenerator(seed=seed)
    return generator.generate_batch(n_users)
