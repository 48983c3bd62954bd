"""
Static navigation configuration: page catalog and design-flow rules.

A single provider serves both as NavigationCatalog (for the classifier)
and DesignFlowRulesProvider (for the design-flow algorithm).

Config shape:
    {
        "app_pages": ["Home", "Dashboard", "Settings"],
        "design_flows": [
            {"source_page": "Home", "target_pages": ["Dashboard"]}
        ],
        "main_navigation_items": ["Home", "Dashboard"]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class NavigationConfigProvider:
    """Catalog and design-flow rules loaded from a dict or a JSON file."""

    def __init__(
        self,
        app_pages: Optional[list[str]] = None,
        design_flows: Optional[dict[str, list[str]]] = None,
        main_navigation_items: Optional[list[str]] = None,
    ):
        """
        Initialize the provider.

        Args:
            app_pages: Every page/feature of the application
            design_flows: Source page -> pages designers linked from it
            main_navigation_items: Pages shown in the main menu
        """
        seen: dict[str, str] = {}
        for page in app_pages or []:
            seen.setdefault(page.casefold(), page)
        self._pages = sorted(seen.values())

        self._design_flows = {
            source: list(targets) for source, targets in (design_flows or {}).items()
        }

        known = set(seen)
        self._main_items = [
            page for page in main_navigation_items or [] if page.casefold() in known
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NavigationConfigProvider":
        """Create from a config dictionary (see module docstring)."""
        flows: dict[str, list[str]] = {}
        for entry in data.get("design_flows") or []:
            source = entry.get("source_page")
            if not source:
                logger.warning(f"Skipping design flow without source_page: {entry}")
                continue
            flows[source] = list(entry.get("target_pages") or [])

        return cls(
            app_pages=data.get("app_pages") or [],
            design_flows=flows,
            main_navigation_items=data.get("main_navigation_items") or [],
        )

    @classmethod
    def from_json_file(cls, path: Path) -> "NavigationConfigProvider":
        """
        Load from a JSON file.

        A missing or malformed file yields an empty provider.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Navigation config not found at {path}, using empty configuration")
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load navigation config from {path}: {e}")
            return cls()

        if not isinstance(data, dict):
            logger.error(f"Navigation config in {path} is not an object, using empty configuration")
            return cls()

        provider = cls.from_dict(data)
        logger.info(
            f"Navigation config loaded from {path}: {len(provider._pages)} pages, "
            f"{len(provider._design_flows)} design flows"
        )
        return provider

    def get_all_available_navigation_items(self) -> list[str]:
        return list(self._pages)

    def get_main_navigation_items(self) -> list[str]:
        return list(self._main_items)

    async def get_design_flow_rules(self) -> dict[str, list[str]]:
        """Rules keyed by source page; consumers match keys case-insensitively."""
        return {source: list(targets) for source, targets in self._design_flows.items()}
