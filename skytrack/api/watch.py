"""
Watch control API endpoints.

Provides endpoints for:
- GET /api/watch - Scheduler status, active region and store summary
- POST /api/watch - Watch a region (bounding box or map viewport)
- DELETE /api/watch - Stop watching
- POST /api/watch/suspend - Pause polling (e.g. while an alert is open)
- POST /api/watch/resume - Resume polling and acknowledge the error
"""

import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from skytrack.ingestion.opensky_client import BoundingBox
from skytrack.ingestion.scheduler import RefreshScheduler

logger = logging.getLogger(__name__)

watch_bp = Blueprint('watch', __name__, url_prefix='/api/watch')


def _scheduler() -> RefreshScheduler:
    return current_app.config['REFRESH_SCHEDULER']


def _parse_region(data: dict) -> Optional[BoundingBox]:
    """
    Accept either a bounding box or a map viewport.

    {"lamin", "lomin", "lamax", "lomax"} or
    {"center_lat", "center_lon", "lat_delta", "lon_delta"}
    """
    try:
        if all(k in data for k in ('lamin', 'lomin', 'lamax', 'lomax')):
            bbox = BoundingBox(
                lat_min=float(data['lamin']),
                lat_max=float(data['lamax']),
                lon_min=float(data['lomin']),
                lon_max=float(data['lomax']),
            )
        elif all(k in data for k in ('center_lat', 'center_lon', 'lat_delta', 'lon_delta')):
            bbox = BoundingBox.from_center_span(
                float(data['center_lat']),
                float(data['center_lon']),
                float(data['lat_delta']),
                float(data['lon_delta']),
            )
        else:
            return None
    except (TypeError, ValueError):
        return None

    if not bbox.is_finite() or bbox.lat_min > bbox.lat_max or bbox.lon_min > bbox.lon_max:
        return None
    return bbox


def _status() -> dict:
    scheduler = _scheduler()
    region = scheduler.active_region
    return {
        'state': scheduler.state.value,
        'region': region.to_params() if region else None,
        'scheduler': scheduler.stats,
        'store': scheduler.store.stats,
    }


@watch_bp.route('', methods=['GET'])
def get_status():
    return jsonify(_status())


@watch_bp.route('', methods=['POST'])
def start_watching():
    """Start (or restart) polling for a region."""
    data = request.get_json(silent=True)
    region = _parse_region(data) if isinstance(data, dict) else None
    if region is None:
        return jsonify({'error': 'Invalid region'}), 400

    _scheduler().start_watching(region)
    return jsonify(_status()), 202


@watch_bp.route('', methods=['DELETE'])
def stop_watching():
    _scheduler().stop()
    return jsonify(_status())


@watch_bp.route('/suspend', methods=['POST'])
def suspend():
    _scheduler().suspend()
    return jsonify(_status())


@watch_bp.route('/resume', methods=['POST'])
def resume():
    """Resume polling; the current error counts as acknowledged."""
    scheduler = _scheduler()
    scheduler.store.acknowledge_error()
    scheduler.resume()
    return jsonify(_status())
