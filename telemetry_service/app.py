"""
ISS Telemetry Relay - Flask service

Serves the push channel (WebSocket at /ws) plus health and snapshot
endpoints. The broadcast scheduler runs in the background for the lifetime
of the process.
"""

import os
import traceback
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from flask_sock import Sock
from simple_websocket import ConnectionClosed
from werkzeug.exceptions import HTTPException

from telemetry_service import __version__
from telemetry_service.config import config
from telemetry_service.logging_config import configure_logging, get_logger
from telemetry_service.scheduler import BroadcastScheduler, build_scheduler

logger = get_logger(__name__)


def serve_subscriber(registry, ws) -> None:
    """
    Hold one push-channel connection open until the client goes away.

    The channel is push-only; anything the client sends is read and dropped.
    """
    subscriber_id = registry.on_connect(ws)
    if subscriber_id is None:
        return
    try:
        while True:
            ws.receive()
    except ConnectionClosed:
        pass
    finally:
        registry.on_disconnect(subscriber_id)


def create_app(relay: BroadcastScheduler, static_dir: Optional[str] = None) -> Flask:
    """
    Build the Flask app around an existing scheduler.

    The scheduler is not started here; ``main()`` does that.
    """
    static_dir = static_dir or config.STATIC_DIR
    app = Flask(__name__, static_folder=static_dir, static_url_path='')
    CORS(app)
    sock = Sock(app)

    @sock.route('/ws')
    def telemetry_feed(ws):
        serve_subscriber(relay.registry, ws)

    @app.route('/', methods=['GET'])
    def index():
        if not os.path.isfile(os.path.join(static_dir, 'index.html')):
            return jsonify({"error": "No frontend installed"}), 404
        return send_from_directory(static_dir, 'index.html')

    @app.route('/health', methods=['GET'])
    def health_check():
        now = datetime.now(timezone.utc)
        elements = relay.elements_cache.current()
        snapshot = relay.latest.get()

        return jsonify({
            "status": "healthy",
            "timestamp": now.isoformat(),
            "version": __version__,
            "services": {
                "scheduler_running": relay.running,
                "elements_loaded": elements is not None,
                "elements_age_s": (now - elements.fetched_at).total_seconds() if elements else None,
                "snapshot_age_s": (now - snapshot.created_at).total_seconds() if snapshot else None,
                "subscribers": len(relay.registry),
            },
        }), 200

    @app.route('/snapshot', methods=['GET'])
    def latest_snapshot():
        snapshot = relay.latest.get()
        if snapshot is None:
            return jsonify({"error": "No telemetry published yet"}), 404
        return jsonify(snapshot.to_wire())

    @app.errorhandler(Exception)
    def handle_error(error):
        """Global error handler"""
        if isinstance(error, HTTPException):
            return error
        logger.error("unhandled_error", error=str(error), traceback=traceback.format_exc())
        return jsonify({
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }), 500

    return app


def main() -> None:
    configure_logging(config.LOG_LEVEL)
    relay = build_scheduler()
    app = create_app(relay)

    relay.start()
    logger.info("relay_starting", port=config.PORT)
    try:
        app.run(host='0.0.0.0', port=config.PORT, threaded=True)
    finally:
        relay.shutdown()


if __name__ == '__main__':
    main()
