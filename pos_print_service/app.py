"""
POS Print Service - Main Application
====================================

Receipt print service for POS terminals.

Run: python -m pos_print_service
"""

import os
import sys
import uuid
import logging
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS

from . import __version__
from .config import PORT, HOST, DEBUG, API_KEY, DATA_DIR, SESSION_FILE
from .dispatcher import Dispatcher
from .errors import InfrastructureError, ValidationError
from .logs import configure_logging
from .models import PrintRequest
from .probe import ReachabilityMonitor
from .reporter import OutcomeReporter
from .session import SessionQueue
from .transports import find_printers, describe_printers

logger = logging.getLogger(__name__)

# =============================================================================
# Application Setup
# =============================================================================

app = Flask(__name__)
CORS(app)

# One gate, monitor and dispatcher per process
_queue = SessionQueue(os.path.join(DATA_DIR, SESSION_FILE))
_monitor = ReachabilityMonitor()
_dispatcher = Dispatcher(monitor=_monitor)


def _check_api_key():
    """Validate API key from request (always passes when none is configured)."""
    if not API_KEY:
        return True

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    auth_header = request.headers.get('Authorization', '')

    # Check body
    if data.get('api_key') == API_KEY:
        return True

    # Check header (Bearer token)
    if auth_header.startswith('Bearer ') and auth_header[7:] == API_KEY:
        return True

    return False


# =============================================================================
# Info Endpoints
# =============================================================================

@app.route('/api', methods=['GET'])
def api_info():
    """API info (JSON)."""
    return jsonify({
        'service': 'POS Print Service',
        'version': __version__,
        'status': 'running',
        'endpoints': {
            'print': '/print',
            'health': '/health',
            'usb_printers': '/api/printers/usb',
            'monitor': '/api/monitor',
        }
    })


@app.route('/health', methods=['GET'])
def health():
    """Health check with gate state."""
    import platform
    import socket as sock

    try:
        current = _queue.current()
    except InfrastructureError as e:
        return jsonify({'status': 'error', 'error': str(e)}), 500

    return jsonify({
        'status': 'online',
        'version': __version__,
        'hostname': sock.gethostname(),
        'platform': platform.system(),
        'python': sys.version.split()[0],
        'session': {
            'current': current,
            'pending': len(_queue.pending()),
        },
        'timestamp': datetime.now().isoformat(),
    })


# =============================================================================
# Printers
# =============================================================================

@app.route('/api/printers/usb', methods=['GET'])
def list_usb_printers():
    """List USB printers currently attached."""
    printers = describe_printers(find_printers())
    return jsonify({
        'success': True,
        'printers': printers,
        'count': len(printers)
    })


@app.route('/api/monitor', methods=['GET'])
def monitor_status():
    """Last known reachability of network printers seen in dispatch."""
    status = _monitor.status()
    return jsonify({
        'success': True,
        'printers': status,
        'count': len(status)
    })


# =============================================================================
# Printing
# =============================================================================

@app.route('/print', methods=['POST'])
def submit_print():
    """Submit a print request (bills, orders, refunds, reports)."""
    session = str(uuid.uuid4())
    reporter = OutcomeReporter(session)

    if not _check_api_key():
        reporter.failure('Print failed: invalid API key.')
        return jsonify(reporter.to_dict()), 401

    try:
        print_request = PrintRequest.from_body(request.get_json(silent=True), session)
    except ValidationError as e:
        reporter.failure(str(e))
        return jsonify(reporter.to_dict()), 400

    try:
        with _queue.session(session):
            _dispatcher.dispatch(print_request, reporter)
    except InfrastructureError as e:
        reporter.failure(f'Print failed: {e}.')
        return jsonify(reporter.to_dict()), 500

    return jsonify(reporter.to_dict())


# =============================================================================
# Main
# =============================================================================

def _log_usb_printers():
    printers = describe_printers(find_printers())
    if not printers:
        logger.info('USB Printers Not Found')
        return
    logger.info('%d USB Printers Found', len(printers))
    for i, printer in enumerate(printers, 1):
        logger.info('USB Printer %d|vid:%s|pid:%s', i, printer['vid'], printer['pid'])


def main():
    """Run the service."""
    log_path = configure_logging()

    print("=" * 60)
    print("  POS Print Service")
    print("=" * 60)
    print(f"  Version: {__version__}")
    print(f"  Port: {PORT}")
    print(f"  Data: {DATA_DIR}")
    print(f"  Log: {log_path}")
    print("=" * 60)
    print("  API Endpoints:")
    print("    POST /print                           - Submit print request")
    print("    GET  /health                          - Health check")
    print("    GET  /api/printers/usb                - Attached USB printers")
    print("    GET  /api/monitor                     - Network printer reachability")
    print("=" * 60)

    logger.info('////////// POS Print Service %s Started //////////', __version__)
    _log_usb_printers()

    # Drop a marker left behind by a previous run
    _queue.reset()
    _monitor.start()

    try:
        app.run(host=HOST, port=PORT, debug=DEBUG, threaded=True)
    finally:
        _monitor.stop()


if __name__ == '__main__':
    main()
