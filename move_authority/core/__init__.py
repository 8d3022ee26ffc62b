"""Core primitives shared by the movement pipeline and the API (observation events).

Kept free of FastAPI concerns so it can be reused by API routes, CLI, and tests.
"""
