# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Pytest configuration and shared fakes."""

import pytest

from fastboot_protocol.errors import TransportError
from fastboot_protocol.transport import Transport


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--serial",
        action="store",
        default=None,
        help="Serial number of a Fastboot device for integration tests",
    )


class FakeTransport(Transport):
    """Scripted transport: records writes and replays queued responses."""

    def __init__(self, responses: list[bytes] = None, in_max: int = 512,
                 out_max: int = 512, fail_write_at: int = None):
        self.responses = list(responses or [])
        self.written: list[bytes] = []
        self.read_sizes: list[int] = []
        self.close_count = 0
        self.fail_write_at = fail_write_at
        self._in_max = in_max
        self._out_max = out_max

    @property
    def in_max_packet_size(self) -> int:
        return self._in_max

    @property
    def out_max_packet_size(self) -> int:
        return self._out_max

    def write(self, data: bytes) -> int:
        if self.fail_write_at is not None and len(self.written) == self.fail_write_at:
            raise TransportError("write", "Pipe error")
        self.written.append(bytes(data))
        return len(data)

    def read(self, size: int) -> bytes:
        self.read_sizes.append(size)
        if not self.responses:
            raise TransportError("read", "Operation timed out")
        return self.responses.pop(0)[:size]

    def close(self):
        self.close_count += 1


@pytest.fixture
def fake_transport():
    """Factory for scripted transports."""
    return FakeTransport


@pytest.fixture(scope="session")
def device_serial(request):
    """Serial number from the command line, or skip."""
    serial = request.config.getoption("--serial")
    if not serial:
        pytest.skip("No device given (--serial)")
    return serial


@pytest.fixture
def device(device_serial):
    """Open the physical device for the duration of one test."""
    from fastboot_protocol import find_device

    dev = find_device(device_serial, timeout=5000)
    yield dev
    dev.close()
