"""
Shared fixtures: an in-memory object store standing in for the S3 bucket,
a signed-in session and an anonymous one.
"""
import pytest

from event_album.fakes import FakeObjectStore
from event_album.session import UserSession


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def session():
    return UserSession(email='a@b.com', name='Alice', role='organizer')


@pytest.fixture
def anonymous_session():
    return UserSession()
