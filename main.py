#!/usr/bin/env python3
"""
ITP NOTIFICATION auth service.

Serves the account registration, verification and login API.
"""

import argparse
import logging

import uvicorn

from itpnotify.config import load_config


def main():
    config = load_config()

    parser = argparse.ArgumentParser(description="ITP NOTIFICATION auth API")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=config.app.port, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    print(f"ITP NOTIFICATION - Authentication System ({config.app.environment})")
    print(f"Listening on http://{args.host}:{args.port}")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if args.debug else "info"
    )


if __name__ == "__main__":
    main()
