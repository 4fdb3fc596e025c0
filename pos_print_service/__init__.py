"""
POS Print Service
=================

Receipt print service for point-of-sale terminals.

Routes bills, kitchen orders, refunds and revenue reports to network
(ESC/POS over TCP 9100) or USB receipt printers, one print session at a time.

Usage:
    python -m pos_print_service

API Endpoints:
    POST /print              - Submit print request
    GET  /health             - Service and gate status
    GET  /api/printers/usb   - Attached USB printers
    GET  /api/monitor        - Network printer reachability
"""

__version__ = '1.2.0'
__author__ = 'EGS Software AG'
