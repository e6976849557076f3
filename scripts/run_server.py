#!/usr/bin/env python3
"""Standalone launcher for the lens-ocr workflow server."""

import argparse
import sys
from pathlib import Path
from typing import Optional

# Add src to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from lens_ocr.config import Settings, get_settings  # noqa: E402


def build_parser(settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    """Build the command-line parser; defaults come from the environment settings."""
    settings = settings or get_settings()

    parser = argparse.ArgumentParser(description="lens-ocr workflow server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    parser.add_argument(
        "--log-level",
        default=settings.log_level.lower(),
        choices=["debug", "info", "warning", "error"],
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (development)")
    return parser


def main():
    """Run the workflow server."""
    args = build_parser().parse_args()

    import uvicorn

    print("=" * 60)
    print("lens-ocr workflow server")
    print("=" * 60)
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Log Level: {args.log_level}")
    print("=" * 60)
    print()
    print("Endpoints:")
    print(f"  - Health: http://{args.host}:{args.port}/health")
    print(f"  - State: http://{args.host}:{args.port}/api/v1/workflow/state")
    print(f"  - Docs: http://{args.host}:{args.port}/docs")
    print("=" * 60)
    print()

    # Single worker: the workflow state lives in process memory.
    try:
        uvicorn.run(
            "lens_ocr.main:app",
            host=args.host,
            port=args.port,
            workers=1,
            log_level=args.log_level,
            reload=args.reload,
        )
    except KeyboardInterrupt:
        print("\n\nServer stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
