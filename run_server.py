#!/usr/bin/env python3
"""
Startup script for the BebCom Delivery API.

Usage:
    # Run with the settings from .env / environment
    python run_server.py

    # Run with custom port
    python run_server.py --port 8001

    # Pick the storage backend for this run
    python run_server.py --storage memory

    # Run with reload for development
    python run_server.py --reload
"""

import argparse
import os
import sys


def main():
    parser = argparse.ArgumentParser(
        description="Run the BebCom Delivery API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to run on (default: PORT or 3000)",
    )
    parser.add_argument(
        "--storage",
        choices=["memory", "file", "database"],
        help="Storage backend (default: STORAGE_BACKEND or file)",
    )
    parser.add_argument(
        "--data-file",
        help="JSON data file for the file backend",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )

    args = parser.parse_args()

    # Config is read at import time, so these must be set before importing the app
    if args.storage:
        os.environ["STORAGE_BACKEND"] = args.storage
    if args.data_file:
        os.environ["DATA_FILE"] = args.data_file

    from dotenv import load_dotenv
    load_dotenv()

    from delivery_api import config
    from delivery_api.app_factory import run_server
    from delivery_api.logging_config import setup_logging

    setup_logging()

    if config.STORAGE_BACKEND == "database" and not config.DATABASE_URL:
        print("Error: STORAGE_BACKEND=database requires DATABASE_URL")
        sys.exit(1)

    print(f"\n{'=' * 50}")
    print(f"Starting: {config.SERVICE_NAME} v{config.API_VERSION}")
    print(f"Storage: {config.STORAGE_BACKEND}")
    print(f"Port: {args.port or config.PORT}")
    print(f"{'=' * 50}\n")

    run_server(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
