#!/usr/bin/env python3
from __future__ import annotations

import os
import sys

import httpx


def main() -> int:
    base_url = os.getenv("DOCAGENT_API_URL", "http://localhost:8000").rstrip("/")
    try:
        with httpx.Client(base_url=base_url, timeout=5.0) as client:
            health = client.get("/healthz")
            print("/healthz:", health.text)
            config = client.get("/config")
            print("/config:", config.text)
            # Readiness calls the model provider, so allow its own timeout.
            ready = client.get("/healthz/ready", timeout=15.0)
            print("/healthz/ready:", ready.text)
    except httpx.HTTPError as exc:
        print(f"Smoke check failed: {exc}", file=sys.stderr)
        return 1
    if health.status_code != 200 or ready.json().get("status") != "ready":
        print("Smoke check failed: service is not ready", file=sys.stderr)
        return 1
    print("Smoke check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
