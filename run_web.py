#!/usr/bin/env python3
"""
Entry point for running the Americano web server.

Usage:
    python run_web.py [--host HOST] [--port PORT] [--data-dir DIR] [--reload]

Examples:
    python run_web.py                    # Run on localhost:8000
    python run_web.py --port 3000        # Run on localhost:3000
    python run_web.py --host 0.0.0.0     # Allow external connections
    python run_web.py --data-dir /tmp/am # Store players and matches elsewhere
"""
import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the Americano web server")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=os.environ.get("AMERICANO_DATA_DIR", "data"),
        help="Directory for storing players and matches (default: data)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload on code changes"
    )

    args = parser.parse_args()
    os.environ["AMERICANO_DATA_DIR"] = args.data_dir

    print(f"Starting Americano web server at http://{args.host}:{args.port}")
    print(f"API documentation: http://{args.host}:{args.port}/docs")
    print()

    uvicorn.run(
        "americano.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
