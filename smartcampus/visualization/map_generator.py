"""
Map Visualization Module for SmartCampus

Generates the campus issue heatmap with Folium: a heat layer plus one
circle marker per located report.
"""

import html
import logging
from typing import Optional, List

import folium
from folium.plugins import HeatMap

from smartcampus.core.constants import (
    CAMPUS_CENTER,
    HEATMAP_GRADIENT,
    HEATMAP_POINT_WEIGHT,
    MARKER_COLOR,
)
from smartcampus.core.geo_utils import has_coordinates
from smartcampus.store.base import StoredReport

logger = logging.getLogger(__name__)


def located_reports(reports: List[StoredReport]) -> List[StoredReport]:
    """Reports carrying both coordinates."""
    return [r for r in reports if has_coordinates(r.latitude, r.longitude)]


def heat_points(reports: List[StoredReport]) -> List[List[float]]:
    """[lat, lon, weight] triples for the heat layer."""
    return [
        [r.latitude, r.longitude, HEATMAP_POINT_WEIGHT]
        for r in located_reports(reports)
    ]


def report_popup_html(report: StoredReport) -> str:
    return (
        f"<strong>{html.escape(report.category)}</strong><br/>"
        f"{html.escape(report.location)}<br/>"
        f"Status: {html.escape(report.status)}"
    )


def create_campus_heatmap(
    reports: List[StoredReport],
    center: Optional[tuple[float, float]] = None,
    zoom: int = 16,
    title: str = "Campus Issue Heatmap",
    show_markers: bool = True,
) -> folium.Map:
    """
    Create an interactive heatmap of reported issues.

    Args:
        reports: Stored reports; those without coordinates are skipped
        center: Map center (lat, lon). Campus center if None.
        zoom: Initial zoom level (1-18)
        title: Map title
        show_markers: Add a circle marker per report

    Returns:
        Folium Map object
    """
    center = center or CAMPUS_CENTER
    points = located_reports(reports)

    campus_map = folium.Map(
        location=center,
        zoom_start=zoom,
        tiles="OpenStreetMap",
    )

    if show_markers:
        marker_group = folium.FeatureGroup(name="Reports")

        for report in points:
            folium.CircleMarker(
                location=[report.latitude, report.longitude],
                radius=5,
                popup=folium.Popup(report_popup_html(report), max_width=300),
                color="#fff",
                weight=1,
                fill=True,
                fill_color=MARKER_COLOR,
                fill_opacity=1,
            ).add_to(marker_group)

        marker_group.add_to(campus_map)

    if points:
        HeatMap(
            heat_points(points),
            name="Heatmap",
            radius=30,
            blur=20,
            gradient=HEATMAP_GRADIENT,
        ).add_to(campus_map)

    folium.LayerControl(position="topright").add_to(campus_map)

    title_html = f'''
    <div style="position: fixed;
                top: 10px; left: 50px;
                background-color: rgba(255,255,255,0.85);
                padding: 10px 20px;
                border-radius: 12px;
                z-index: 9999;
                font-family: Arial;">
        <h3 style="margin: 0; font-size: 14px;">{html.escape(title)}</h3>
        <p style="margin: 5px 0 0 0; color: #666; font-size: 12px;">
            Real reported locations ({len(points)})
        </p>
    </div>
    '''
    campus_map.get_root().html.add_child(folium.Element(title_html))

    logger.info(f"Created heatmap with {len(points)} of {len(reports)} reports")
    return campus_map


def save_campus_heatmap(
    reports: List[StoredReport],
    output_path: str = "campus_heatmap.html",
    center: Optional[tuple[float, float]] = None,
    zoom: int = 16,
) -> str:
    """
    Generate and save the campus heatmap.

    Returns:
        Path to saved file
    """
    campus_map = create_campus_heatmap(reports, center=center, zoom=zoom)
    campus_map.save(output_path)
    logger.info(f"Map saved to {output_path}")
    return output_path
