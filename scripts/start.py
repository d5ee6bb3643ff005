#!/usr/bin/env python3
"""
Production startup script.

1. Creates any missing data documents (init_data.py)
2. Starts gunicorn (replaces this process via os.execvp)

Usage:
    python scripts/start.py

Document locks are per process, so gunicorn runs a single worker and scales
with threads instead.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    # Step 0: Validate PORT environment variable
    port = os.environ.get("PORT", "").strip()
    if not port:
        print("WARNING: PORT not set, using default 10000", flush=True)
        port = "10000"

    try:
        port_int = int(port)
        if port_int < 1 or port_int > 65535:
            raise ValueError("Port out of range")
    except ValueError:
        print(f"ERROR: Invalid PORT value '{port}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)

    print(f"PORT={port} validated", flush=True)

    # Step 1: Initialize data documents
    print("=== Initializing data ===", flush=True)
    from scripts.init_data import init_data
    try:
        docs = init_data()
    except Exception as e:
        print(f"Data initialization failed: {e}", flush=True)
        sys.exit(1)
    print(f"Data dir: {docs.config.base_dir}", flush=True)

    threads = os.environ.get("GUNICORN_THREADS", "8").strip() or "8"

    # Step 2: Start gunicorn (exec replaces this process)
    print("=== Starting gunicorn ===", flush=True)
    print(f"Gunicorn binding to 0.0.0.0:{port}", flush=True)
    print("Health check endpoint ready at /healthz", flush=True)

    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", "1",
            "--threads", threads,
            "--timeout", "60",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
