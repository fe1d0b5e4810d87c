#!/usr/bin/env python3
"""Run the FastAPI ledger API server.

This script starts the uvicorn server for the paper-trading API.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    DATABASE_URL - Optional. SQLAlchemy URL (default: sqlite:///papertrade.db)

Examples:
    python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from papertrade.config import LedgerConfig  # noqa: E402


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Run the FastAPI paper-trading API server.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args(argv)

    # Fail fast on bad PAPERTRADE_* values
    try:
        LedgerConfig.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Starting FastAPI server on {args.host}:{args.port}")
    print("Endpoints:")
    print(f"  - GET  http://{args.host}:{args.port}/health")
    print(f"  - GET  http://{args.host}:{args.port}/wallet")
    print(f"  - GET  http://{args.host}:{args.port}/portfolio")
    print(f"  - POST http://{args.host}:{args.port}/portfolio/buy")
    print(f"  - POST http://{args.host}:{args.port}/portfolio/sell")
    print(f"  - Docs http://{args.host}:{args.port}/docs")
    print()

    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
