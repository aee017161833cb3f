import logging

from rocket_ops.services.inference import (
    TEAM_TO_CATEGORY,
    InferenceRegistry,
    category_from_team,
    registry,
    team_from_category,
)


class TestInferenceLookups:
    def test_known_team_maps_to_category(self):
        assert category_from_team("Avionics") == "Electronics"
        assert category_from_team("Testing") == "Testing Equipment"

    def test_unknown_team_falls_back_to_general(self):
        assert category_from_team("Marketing") == "General"

    def test_known_category_maps_to_first_declared_team(self):
        assert team_from_category("Electronics") == "Avionics"
        assert team_from_category("Recovery") == "Recovery"

    def test_unknown_category_falls_back_to_avionics(self):
        assert team_from_category("Safety Equipment") == "Avionics"


class TestRoundTrip:
    def test_reports_actual_mismatches(self):
        """Enumerate every team instead of assuming the round trip is identity."""
        mismatches = registry.round_trip_mismatches()
        report = {team: back for team, _, back in mismatches}

        for team in TEAM_TO_CATEGORY:
            back = team_from_category(category_from_team(team))
            if back == team:
                assert team not in report
            else:
                assert report[team] == back

        assert report == {"Telemetry": "Avionics", "Parachute": "Recovery"}

    def test_one_to_one_table_has_no_mismatches(self):
        reg = InferenceRegistry({"A": "x", "B": "y"}, default_team="A", default_category="x")
        assert reg.round_trip_mismatches() == []

    def test_mismatches_are_logged_at_construction(self, caplog):
        with caplog.at_level(logging.INFO, logger="inference"):
            InferenceRegistry({"A": "x", "B": "x"}, default_team="A", default_category="x")
        assert "Team 'B' maps to category 'x'" in caplog.text
