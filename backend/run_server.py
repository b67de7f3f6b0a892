#!/usr/bin/env python3
"""
Launch script for the Drive Telemetry Logger backend.

Usage:
    python run_server.py [sessions_folder] [--port PORT] [--host HOST] [--simulate]

Examples:
    python run_server.py                    # Use default ./data/sessions folder
    python run_server.py /path/to/sessions  # Use custom folder
    python run_server.py --simulate         # Replay a synthetic drive
"""

import argparse
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Drive Telemetry Logger Server")
    parser.add_argument(
        "sessions_folder",
        nargs="?",
        default="./data/sessions",
        help="Folder for persisted session files (default: ./data/sessions)"
    )
    parser.add_argument(
        "--state-folder",
        default="./data/state",
        help="Folder for the session counter and preferences (default: ./data/state)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--tick-period",
        type=float,
        default=1.0,
        help="Seconds between samples (default: 1.0)"
    )
    parser.add_argument(
        "--simulate", "-s",
        action="store_true",
        help="Replay a synthetic figure-8 drive instead of waiting for pushed fixes"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    if args.tick_period <= 0:
        parser.error("--tick-period must be positive")

    sessions_folder = Path(args.sessions_folder)

    print("Drive Telemetry Logger")
    print("=" * 40)
    print(f"Sessions folder: {sessions_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    # Configure the runtime for the FastAPI lifespan
    os.environ["DRIVELOG_SESSIONS_FOLDER"] = str(sessions_folder)
    os.environ["DRIVELOG_STATE_FOLDER"] = str(args.state_folder)
    os.environ["DRIVELOG_TICK_PERIOD"] = str(args.tick_period)
    if args.simulate:
        os.environ["DRIVELOG_SIMULATE"] = "1"
    if args.debug:
        os.environ["DRIVELOG_LOG_LEVEL"] = "DEBUG"

    print("\nAPI Endpoints:")
    print("  GET  /                  - Health check")
    print("  POST /position          - Push a position fix")
    print("  POST /recording/start   - Start recording")
    print("  POST /recording/stop    - Stop and save")
    print("  GET  /recording/live    - Live speed, distance, speed window")
    print("  GET  /sessions          - List saved sessions")
    print("  GET  /sessions/{ref}    - Get a saved session")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "drivelog.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
