"""Questforge — dev launcher. Starts the API server in watch mode."""

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

from backend.config import ROOT, Settings


def main():
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Questforge dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Reset the demo user and seed demo quests")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data_dir = args.data_dir or settings.data_dir

    if args.demo:
        from backend.demo import create_demo_data
        from questforge.storage import Storage
        create_demo_data(Storage(data_dir), settings.dev_user or "demo")

    # Build env for the server process so it picks up the same data dir
    env = os.environ.copy()
    env["DATA_DIR"] = str(data_dir.resolve())

    cmd = [
        sys.executable, "-m", "uvicorn", "backend.app:create_app", "--factory",
        "--host", settings.host, "--port", str(settings.port),
        "--log-level", settings.log_level.lower(),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting backend on http://localhost:{settings.port} ...")
    proc = subprocess.Popen(cmd, cwd=ROOT, env=env)
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
