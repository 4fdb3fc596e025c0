"""
POS Print Service Configuration
"""

import os

# =============================================================================
# Server Configuration
# =============================================================================

PORT = int(os.environ.get('POS_PRINT_PORT', 2000))
HOST = os.environ.get('POS_PRINT_HOST', '0.0.0.0')
DEBUG = os.environ.get('POS_PRINT_DEBUG', 'false').lower() == 'true'

# API Key for authentication (empty disables the check)
API_KEY = os.environ.get('POS_PRINT_API_KEY', '')

# =============================================================================
# Printer Defaults
# =============================================================================

SOCKET_TIMEOUT = 30  # seconds
PROBE_TIMEOUT = 2  # seconds
USB_TIMEOUT = 5000  # milliseconds

# ESC/POS raw port for network printers
NETWORK_PORT = 9100

# Seconds of printer time budgeted per printed slip
PRINT_TIME = float(os.environ.get('POS_PRINT_TIME', 1.0))

# Characters per line and python-escpos capability profile
RECEIPT_WIDTH = 48
PRINTER_PROFILE = os.environ.get('POS_PRINT_PROFILE', 'default')

# =============================================================================
# Hardware Types
# =============================================================================

NETWORK = 'Network'
USB = 'USB'

# Brands driven by their own SDK on the terminal; accepted but not printed here
OTHER_BRANDS = ('SUNMI', 'UHUO')

# =============================================================================
# Job Kinds
# =============================================================================

# Dispatch order matters for log readability only
JOB_KINDS = {
    'report': {
        'name': 'Revenue Report',
        'field': 'toPrintRevenueAnalysisContent',
        'content': 'revenueAnalysis',
    },
    'bill': {
        'name': 'Customer Bill',
        'field': 'toPrintBillContent',
        'content': 'customerContent',
    },
    'order': {
        'name': 'Kitchen Order',
        'field': 'toPrintOrderContent',
        'content': 'chefContent',
    },
    'refund': {
        'name': 'Refund Slip',
        'field': 'toPrintRefundContent',
        'content': 'refundContent',
    },
}

# =============================================================================
# Session Gate
# =============================================================================

SESSION_LEASE_SECONDS = float(os.environ.get('POS_PRINT_SESSION_LEASE', 300))
SESSION_POLL_INTERVAL = 0.5

# =============================================================================
# Reachability Monitor
# =============================================================================

MONITOR_INTERVAL = float(os.environ.get('POS_PRINT_MONITOR_INTERVAL', 60))

# =============================================================================
# Storage Configuration
# =============================================================================

# Session marker and log file live here
DATA_DIR = os.environ.get('POS_PRINT_DATA_DIR', os.path.expanduser('~/.pos_print_service'))

SESSION_FILE = 'session.json'
LOG_FILE = 'app.log'

# Log is truncated and restarted past this size
LOG_MAX_BYTES = int(os.environ.get('POS_PRINT_LOG_MAX_BYTES', 1_000_000))
LOG_LEVEL = os.environ.get('POS_PRINT_LOG_LEVEL', 'INFO')
