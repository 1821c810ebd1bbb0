# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Exception hierarchy for the Fastboot client.

Every error raised by this package derives from FastbootError, so callers
can tell protocol-level rejections from transport-level I/O failures while
still catching everything in one place.
"""

from typing import Optional


class FastbootError(Exception):
    """Base exception for all Fastboot errors."""
    pass


class TransportError(FastbootError):
    """Underlying USB write or read failed."""

    def __init__(self, operation: str, reason: object = None, device: Optional[str] = None):
        self.operation = operation
        self.reason = reason
        self.device = device
        message = f"USB {operation} failed"
        if device:
            message += f" on {device}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message)


class MalformedFrame(FastbootError):
    """Inbound transfer too short to carry a status tag."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        super().__init__(f"Malformed response frame ({len(self.data)} bytes): {self.data!r}")


class DeviceNotFound(FastbootError):
    """No Fastboot device with the requested serial number."""

    def __init__(self, serial: Optional[str] = None):
        self.serial = serial
        if serial is None:
            super().__init__("No Fastboot device found")
        else:
            super().__init__(f"Device with serial {serial} not found")


class VariableNotFound(FastbootError):
    """getvar returned FAIL."""

    def __init__(self, name: str, payload: bytes = b""):
        self.name = name
        self.payload = payload
        super().__init__(f"Variable not found: {name}")


class PayloadTooLarge(FastbootError):
    """Payload length does not fit the 8 hex digit size field."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Payload too large for download: {size} bytes (max 0xffffffff)")


class _StatusError(FastbootError):
    """Error carrying an unexpected response status and its payload."""

    def __init__(self, message: str, status, payload: bytes = b""):
        self.status = status
        self.payload = payload
        text = payload.decode("ascii", errors="replace")
        detail = f"{message}: {status}"
        if text:
            detail += f" {text}"
        super().__init__(detail)


class DownloadRejected(_StatusError):
    """Device did not answer DATA to a download request."""

    def __init__(self, status, payload: bytes = b""):
        super().__init__("Failed to start data phase", status, payload)


class DownloadIncomplete(_StatusError):
    """Device did not answer OKAY at the end of the data phase."""

    def __init__(self, status, payload: bytes = b""):
        super().__init__("Failed to finish data phase", status, payload)


class FlashFailed(_StatusError):
    """flash:<partition> was not acknowledged with OKAY."""

    def __init__(self, partition: str, status, payload: bytes = b""):
        self.partition = partition
        super().__init__(f"Failed to flash partition {partition}", status, payload)


class BootFailed(_StatusError):
    """boot was not acknowledged with OKAY."""

    def __init__(self, status, payload: bytes = b""):
        super().__init__("Failed to boot image", status, payload)
