"""
SmartCampus - Visualization
"""

from smartcampus.visualization.map_generator import (
    create_campus_heatmap,
    save_campus_heatmap,
    heat_points,
)

__all__ = [
    "create_campus_heatmap",
    "save_campus_heatmap",
    "heat_points",
]
