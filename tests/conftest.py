import pytest

from cellflow import settings


class Box:
    """Plain attribute bag used as a reactive container in tests."""

    def __init__(self, **attrs):
        self.__dict__.update(attrs)


@pytest.fixture(autouse=True)
def _restore_settings():
    yield
    settings.reset()
