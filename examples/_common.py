"""
Shared helpers for JobRelay examples.

Checks the backend is up before an example starts firing requests.
"""

import sys

import httpx

BASE = "http://localhost:5000/api/v1"


def check_backend() -> dict:
    """Verify the backend is reachable and return its health report."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  jobrelay serve --reload")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Postgres:     {health['postgres']}")
    print(f"  Redis:        {health['redis']}")
    print(f"  Connections:  {health['connections']}")
    print(f"  Online users: {health['onlineUsers']}")

    if health["postgres"] != "ok":
        print("\nERROR: Postgres is not connected. Jobs and messages can't be stored.")
        sys.exit(1)
    return health


def create_client() -> httpx.Client:
    check_backend()
    return httpx.Client(base_url=BASE, timeout=10)
