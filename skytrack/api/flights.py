"""
Flight data API endpoints.

Provides endpoints for:
- GET /api/flights - List visible (or all) flights
- GET /api/flights/countries - Distinct origin countries for the filter
- PUT /api/flights/country - Set or clear the country filter
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from skytrack.store import FlightStore, filter_flights

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api/flights')


def _store() -> FlightStore:
    return current_app.config['FLIGHT_STORE']


@flights_bp.route('', methods=['GET'])
def list_flights():
    """
    List currently tracked flights.

    Query parameters:
    - airborne_only: boolean, return the filtered view (default true).
      With false, every fetched flight is returned, grounded ones included.
    - limit: int, max results to return (default 500)

    Response includes query timing for latency awareness.
    """
    start_time = time.perf_counter()
    store = _store()

    airborne_only = request.args.get('airborne_only', 'true').lower() == 'true'
    try:
        limit = max(0, min(int(request.args.get('limit', 500)), 5000))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400

    if airborne_only:
        flights = store.filtered_flights.value
    else:
        flights = store.flights.value

    flight_dicts = [f.to_dict() for f in flights[:limit]]

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'flights': flight_dicts,
        'count': len(flight_dicts),
        'total_count': len(store.flights.value),
        'selected_country': store.selected_country.value,
        'error': store.error.value,
        'is_loading': store.is_loading.value,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@flights_bp.route('/countries', methods=['GET'])
def list_countries():
    """Countries available for the filter, with airborne flight counts."""
    store = _store()
    flights = store.flights.value
    countries = store.available_countries.value

    return jsonify({
        'countries': countries,
        'airborne_counts': {
            country: len(filter_flights(flights, country)) for country in countries
        },
        'selected_country': store.selected_country.value,
    })


@flights_bp.route('/country', methods=['PUT'])
def set_country():
    """
    Set the country filter.

    Body: {"country": "Turkey"} or {"country": null} to clear.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'country' not in data:
        return jsonify({'error': 'Body must be a JSON object with a "country" field'}), 400

    country = data['country']
    if country is not None and not isinstance(country, str):
        return jsonify({'error': 'country must be a string or null'}), 400

    store = _store()
    store.set_selected_country(country or None)
    logger.info(f'Country filter set to {country!r}')

    return jsonify({
        'selected_country': store.selected_country.value,
        'count': len(store.filtered_flights.value),
    })
