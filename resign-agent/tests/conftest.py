# tests/conftest.py
import pytest

from services.models import SessionContext


@pytest.fixture
def session():
    return SessionContext(cookies={"sid": "abc"}, csrf_token="token")
