"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the hub state, the FastAPI
application and its test client.
"""

import os

import pytest

# Keep operator auth disabled unless a test enables it explicitly
os.environ.pop("OPERATOR_PASSWORD", None)
os.environ.setdefault("LOG_FILE_PATH", "")


@pytest.fixture
def hub():
    """
    Provides a fresh hub state.

    Returns:
        HubState: Empty registry with ids starting at 1.
    """
    from agent_hub.state import HubState

    return HubState()


@pytest.fixture
def app():
    """
    Provides a freshly built application.

    Returns:
        FastAPI: Application with its own empty hub state.
    """
    from agent_hub import application

    return application()


@pytest.fixture
def client(app):
    """
    Provides a test client that runs the application lifespan.

    Args:
        app: FastAPI application fixture.

    Yields:
        TestClient: FastAPI test client instance.
    """
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def operator_password(monkeypatch):
    """
    Enables operator HTTP Basic auth for the duration of a test.

    Returns:
        tuple[str, str]: Username and password to authenticate with.
    """
    from agent_hub.settings import app_settings

    monkeypatch.setattr(app_settings, "OPERATOR_PASSWORD", "s3cret")
    return app_settings.OPERATOR_USERNAME, "s3cret"
