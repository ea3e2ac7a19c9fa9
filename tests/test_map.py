"""
Tests for the campus heatmap
"""
import folium

import sys
sys.path.insert(0, '.')

from smartcampus.store.base import StoredReport
from smartcampus.visualization.map_generator import (
    create_campus_heatmap,
    heat_points,
    located_reports,
    save_campus_heatmap,
)


class TestHeatmap:
    """Heat layer and markers from stored reports."""

    def test_only_located_reports_plotted(self, sample_reports):
        ids = [r.id for r in located_reports(sample_reports)]
        # Missing longitude is skipped; (0, 0) is a real position
        assert ids == ["r5aaaaaaaa", "r4bbbbbbbb", "r2dddddddd"]

    def test_heat_points_weight(self, sample_reports):
        points = heat_points(sample_reports)
        assert points[0] == [9.5920, 76.5230, 0.8]
        assert all(p[2] == 0.8 for p in points)

    def test_create_map(self, sample_reports):
        campus_map = create_campus_heatmap(sample_reports)

        assert isinstance(campus_map, folium.Map)
        html = campus_map.get_root().render()
        assert "Real reported locations (3)" in html

    def test_popup_escaped(self):
        report = StoredReport(
            id="x", category="<script>", location="Gym", description="Bench",
            latitude=9.59, longitude=76.52,
        )
        html = create_campus_heatmap([report]).get_root().render()
        assert "<strong><script></strong>" not in html

    def test_empty_map(self):
        campus_map = create_campus_heatmap([], center=(9.59, 76.52), zoom=15)
        assert campus_map.location == [9.59, 76.52]

    def test_save(self, sample_reports, tmp_path):
        output = tmp_path / "heatmap.html"
        path = save_campus_heatmap(sample_reports, output_path=str(output))

        assert path == str(output)
        assert output.exists()
