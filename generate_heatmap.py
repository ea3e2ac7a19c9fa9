#!/usr/bin/env python3
"""
SmartCampus - Generate Campus Heatmap
Loads stored reports and writes an interactive heatmap of reported issues.
"""
import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from smartcampus.analytics.dashboard import build_admin_overview
from smartcampus.core.config import get_settings
from smartcampus.core.logging import setup_logging
from smartcampus.services import build_store
from smartcampus.store.base import ReportFilter
from smartcampus.visualization.map_generator import located_reports, save_campus_heatmap


def main():
    settings = get_settings()
    setup_logging(level=settings.log_level)

    output_path = sys.argv[1] if len(sys.argv) > 1 else "campus_heatmap.html"

    print("=" * 60)
    print("SmartCampus - Generating Campus Heatmap")
    print("=" * 60)

    store = build_store(settings)
    print(f"\nLoading reports from the {store.backend_name} store...")

    try:
        reports = asyncio.run(store.query(ReportFilter()))
    except Exception as e:
        print(f"ERROR: could not load reports: {e}")
        sys.exit(1)

    located = located_reports(reports)
    print(f"\nTotal reports: {len(reports)}")
    print(f"With coordinates: {len(located)}")

    if not reports:
        print("No reports yet; the map will only show the campus.")

    overview = build_admin_overview(reports)
    print(f"\nCritical alerts: {overview.critical_alerts}")
    print(f"Resolved today: {overview.resolved_today}")
    for category in overview.categories:
        print(f"  {category.name}: {category.value}")

    save_campus_heatmap(
        reports,
        output_path=output_path,
        center=settings.campus_center,
        zoom=settings.heatmap_zoom,
    )

    print(f"\nMap saved to: {os.path.abspath(output_path)}")


if __name__ == "__main__":
    main()
