#!/usr/bin/env python
"""
POS Print Service - Standalone Entry Point

Run directly:
    python main.py

Or with environment variables:
    POS_PRINT_PORT=2000 python main.py
"""

from pos_print_service.app import main


if __name__ == '__main__':
    main()
