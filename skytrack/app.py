"""
SkyTrack Flask Application.

Main entry point for the web application. Initializes:
- Snapshot cache
- Flight store and refresh scheduler
- API routes

Usage:
    python -m skytrack.app

Or with gunicorn:
    gunicorn 'skytrack.app:create_app()'
"""

import atexit
import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from skytrack.config import config
from skytrack.api import flights_bp, watch_bp
from skytrack.cache import PersistentCache
from skytrack.ingestion import BoundingBox, OpenSkyClient
from skytrack.ingestion.scheduler import RefreshScheduler
from skytrack.store import FlightStore

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    store: Optional[FlightStore] = None,
    scheduler: Optional[RefreshScheduler] = None,
    start_watching: bool = True,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        store: Flight store to expose (built from config if None)
        scheduler: Refresh scheduler driving the store (built from config if None)
        start_watching: Whether to start polling DEFAULT_REGION right away.
                        Set to False for testing.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    if store is None:
        logger.info('Initializing snapshot cache...')
        store = FlightStore(
            PersistentCache(config.cache.database_url),
            cache_max_age_seconds=config.cache.max_age_seconds,
        )
    if scheduler is None:
        scheduler = RefreshScheduler(store, OpenSkyClient.from_config())
        atexit.register(scheduler.close)

    app.config['FLIGHT_STORE'] = store
    app.config['REFRESH_SCHEDULER'] = scheduler

    app.register_blueprint(flights_bp)
    app.register_blueprint(watch_bp)

    if start_watching and config.default_region:
        lamin, lomin, lamax, lomax = config.default_region
        scheduler.start_watching(BoundingBox(
            lat_min=lamin, lat_max=lamax, lon_min=lomin, lon_max=lomax,
        ))
    elif start_watching:
        logger.warning('No default region configured. Set DEFAULT_REGION in .env or POST /api/watch')

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting SkyTrack on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate scheduler threads
    )


if __name__ == '__main__':
    run_development_server()
