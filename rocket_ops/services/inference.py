import logging
from typing import Dict, List, Tuple

from rocket_ops.core.config import DEFAULT_CATEGORY, DEFAULT_TEAM

log = logging.getLogger("inference")

# Declaration order matters: the first team listed for a category is the
# one team_from_category answers with.
TEAM_TO_CATEGORY: Dict[str, str] = {
    "Avionics": "Electronics",
    "Telemetry": "Electronics",
    "Recovery": "Recovery",
    "Parachute": "Recovery",
    "Mechanical": "Mechanical",
    "Software": "Software",
    "Testing": "Testing Equipment",
    "General": "General",
}


class InferenceRegistry:
    """
    Single team -> category table with its inverse derived from it.

    Several teams may share a category, so the inverse cannot be exact.
    Teams that do not survive team -> category -> team are reported by
    `round_trip_mismatches` and logged when the registry is built.
    """

    def __init__(self, team_to_category: Dict[str, str], default_team: str, default_category: str):
        self.team_to_category = dict(team_to_category)
        self.default_team = default_team
        self.default_category = default_category

        self.category_to_team: Dict[str, str] = {}
        for team, category in self.team_to_category.items():
            self.category_to_team.setdefault(category, team)

        for team, category, back in self.round_trip_mismatches():
            log.info(f"Team '{team}' maps to category '{category}', which maps back to team '{back}'.")

    def category_from_team(self, team: str) -> str:
        return self.team_to_category.get(team, self.default_category)

    def team_from_category(self, category: str) -> str:
        return self.category_to_team.get(category, self.default_team)

    def round_trip_mismatches(self) -> List[Tuple[str, str, str]]:
        """Every (team, category, team_back) where team_back != team."""
        mismatches = []
        for team in self.team_to_category:
            category = self.category_from_team(team)
            back = self.team_from_category(category)
            if back != team:
                mismatches.append((team, category, back))
        return mismatches


registry = InferenceRegistry(TEAM_TO_CATEGORY, default_team=DEFAULT_TEAM, default_category=DEFAULT_CATEGORY)


def category_from_team(team: str) -> str:
    return registry.category_from_team(team)


def team_from_category(category: str) -> str:
    return registry.team_from_category(category)
