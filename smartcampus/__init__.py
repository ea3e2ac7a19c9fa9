"""
SmartCampus - Campus issue reporting
"""

__version__ = "0.1.0"
