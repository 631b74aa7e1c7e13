#!/usr/bin/env python3
"""
Starts the blog REST API with uvicorn.
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from blogstore.core.config import API_HOST, API_PORT, DEBUG, get_store_backend, validate_config


def main():
    parser = argparse.ArgumentParser(description="Run the blog REST API")
    parser.add_argument("--host", default=API_HOST, help=f"Bind address (default: {API_HOST})")
    parser.add_argument("--port", type=int, default=API_PORT, help=f"Port (default: {API_PORT})")
    args = parser.parse_args()

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        sys.exit(1)

    print(f"Starting Blog Store API ({get_store_backend()} store)...")
    if DEBUG:
        print(f"Docs available at: http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "blogstore.api.main:app",
        host=args.host,
        port=args.port,
        reload=DEBUG
    )


if __name__ == "__main__":
    main()
