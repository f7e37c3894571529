"""
API module for SkyTrack.

Provides REST endpoints for:
- Flight data (visible flights, available countries, country filter)
- Watch control (region, suspend/resume, status)
"""

from skytrack.api.flights import flights_bp
from skytrack.api.watch import watch_bp

__all__ = ['flights_bp', 'watch_bp']
