#!/usr/bin/env python3
"""
Flashmoji Service Entrypoint

This script determines which process to run based on the SERVICE_TYPE
environment variable.

SERVICE_TYPE values:
  - web (default): Run the FastAPI web server via uvicorn

The image queue lives inside the web process, so there is no separate
worker service. Run a single web worker: a second process would hold its
own queue and double the load on the image provider.
"""

import os
import sys

SERVICE_TYPE = os.environ.get("SERVICE_TYPE", "web")
PORT = os.environ.get("PORT", "8000")

print("=" * 50)
print(f"Flashmoji Service: {SERVICE_TYPE}")
print("=" * 50)

if SERVICE_TYPE == "web":
    print("Starting web server (uvicorn)...")
    cmd = [
        "uvicorn", "flashmoji.api.main:app",
        "--workers", "1",
        "--host", "0.0.0.0",
        "--port", PORT,
        "--timeout-graceful-shutdown", "30"
    ]
else:
    print(f"ERROR: Unknown SERVICE_TYPE: {SERVICE_TYPE}")
    print("Valid values: web")
    sys.exit(1)

print(f"Running: {' '.join(cmd)}")
print("=" * 50)

# Replace this process with the actual command
os.execvp(cmd[0], cmd)
