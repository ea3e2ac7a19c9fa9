"""
SmartCampus - Serverless Entry Point
Exposes the report wizard, dashboards and heatmap API.
"""

import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from smartcampus.api.main import app

# Serverless handler
handler = app
