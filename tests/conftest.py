"""
Pytest configuration and shared fixtures for agent tests
"""

import os
import sys
import time
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set environment variables for testing
os.environ["TESTING"] = "1"

from shared import codec  # noqa: E402
from shared.models import GreetMessage  # noqa: E402


class FakeTransport:
    """In-memory stand-in for the ZeroMQ transport."""

    def __init__(self):
        self.connects = []
        self.sent = []
        self.accept = True
        self.closed = False
        self.inbound = []

    def connect(self, address):
        self.connects.append(address)

    def try_send(self, data):
        if not self.accept:
            return False
        self.sent.append(data)
        return True

    def poll(self, timeout_ms):
        if not self.inbound:
            time.sleep(timeout_ms / 1000.0)
        return bool(self.inbound)

    def receive(self):
        return self.inbound.pop(0) if self.inbound else None

    def close(self):
        self.closed = True

    def sent_messages(self):
        return [codec.decode(data) for data in self.sent]


class FakeIdentity:
    def __init__(self):
        self.calls = 0

    def greeting(self):
        self.calls += 1
        return GreetMessage(
            ip="192.168.1.100",
            machine_name="test-host",
            user_name="tester",
            os_version="Linux 6.1 (test)",
        )


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def clock():
    return FakeClock()
