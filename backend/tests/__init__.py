"""
Helpdesk backend tests.

    unit/         engine rules and services against in-memory repositories (tests/fakes.py)
    integration/  HTTP routes through FastAPI's TestClient with the same fakes

Run from backend/:  pytest tests/
"""
