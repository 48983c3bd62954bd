"""Tests for NavigationConfigProvider."""

import json

import pytest

from nextnav.providers import NavigationConfigProvider


@pytest.fixture
def config_data():
    return {
        "app_pages": ["Home", "Dashboard", "Reports", "home"],
        "design_flows": [
            {"source_page": "Home", "target_pages": ["Dashboard", "Reports"]},
            {"target_pages": ["Nowhere"]},
        ],
        "main_navigation_items": ["Home", "Dashboard", "Ghost"],
    }


class TestNavigationConfigProvider:
    """Tests for catalog and design-flow loading."""

    def test_pages_deduplicated_and_sorted(self, config_data):
        """Test pages deduplicated case-insensitively and sorted."""
        provider = NavigationConfigProvider.from_dict(config_data)
        assert provider.get_all_available_navigation_items() == ["Dashboard", "Home", "Reports"]

    def test_main_items_limited_to_known_pages(self, config_data):
        """Test main items limited to known pages."""
        provider = NavigationConfigProvider.from_dict(config_data)
        assert provider.get_main_navigation_items() == ["Home", "Dashboard"]

    @pytest.mark.asyncio
    async def test_flows_without_source_skipped(self, config_data):
        """Test flows without a source are skipped."""
        provider = NavigationConfigProvider.from_dict(config_data)
        assert await provider.get_design_flow_rules() == {"Home": ["Dashboard", "Reports"]}

    @pytest.mark.asyncio
    async def test_rules_are_copies(self, config_data):
        """Test returned rules are copies."""
        provider = NavigationConfigProvider.from_dict(config_data)
        rules = await provider.get_design_flow_rules()
        rules["Home"].append("Mutated")

        assert await provider.get_design_flow_rules() == {"Home": ["Dashboard", "Reports"]}

    @pytest.mark.asyncio
    async def test_from_json_file(self, tmp_path, config_data):
        """Test loading from a JSON file."""
        path = tmp_path / "navigation.json"
        path.write_text(json.dumps(config_data), encoding="utf-8")

        provider = NavigationConfigProvider.from_json_file(path)

        assert "Dashboard" in provider.get_all_available_navigation_items()
        assert "Home" in await provider.get_design_flow_rules()

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        """Test missing file gives an empty provider."""
        provider = NavigationConfigProvider.from_json_file(tmp_path / "missing.json")

        assert provider.get_all_available_navigation_items() == []
        assert await provider.get_design_flow_rules() == {}

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_malformed_file_is_empty(self, tmp_path, content):
        """Test malformed file gives an empty provider."""
        path = tmp_path / "navigation.json"
        path.write_text(content, encoding="utf-8")

        provider = NavigationConfigProvider.from_json_file(path)

        assert provider.get_all_available_navigation_items() == []
        assert provider.get_main_navigation_items() == []

    def test_empty_dict(self):
        """Test empty config."""
        provider = NavigationConfigProvider.from_dict({})
        assert provider.get_all_available_navigation_items() == []
