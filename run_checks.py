"""
Smoke check against the in-process app (in-memory stores unless configured otherwise).

Usage: USE_MOCK_DB=true python run_checks.py
"""

from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app, raise_server_exceptions=False)

for path in ("/", "/health", "/health/db", "/stats"):
    print(f"\nGET {path}:")
    resp = client.get(path)
    print(resp.status_code)
    try:
        print(resp.json())
    except ValueError:
        print(resp.text)
