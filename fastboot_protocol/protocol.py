# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Fastboot wire protocol definitions and serialization.

Outbound commands are undelimited ASCII strings, one per USB transfer.
Inbound frames start with a 4-byte ASCII status tag followed by the
payload; the USB transfer boundary is the frame boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import MalformedFrame, PayloadTooLarge

# Fastboot interface signature
FASTBOOT_CLASS = 0xFF
FASTBOOT_SUBCLASS = 0x42
FASTBOOT_PROTOCOL = 0x03

# Bulk endpoint addresses
ENDPOINT_OUT = 0x01
ENDPOINT_IN = 0x81

# Data phase chunk size, independent of the endpoint max packet size
DOWNLOAD_CHUNK_SIZE = 0x40040

MAX_DOWNLOAD_SIZE = 0xFFFFFFFF

TAG_SIZE = 4


class Status(Enum):
    """Response status tags."""
    OKAY = "OKAY"
    FAIL = "FAIL"
    DATA = "DATA"
    INFO = "INFO"
    UNKNOWN = "UNKNOWN"

    def __str__(self) -> str:
        return self.value


_TAGS = {
    b"OKAY": Status.OKAY,
    b"FAIL": Status.FAIL,
    b"DATA": Status.DATA,
    b"INFO": Status.INFO,
}


@dataclass
class ResponseFrame:
    """One decoded inbound transfer."""
    status: Status
    payload: bytes
    tag: bytes = b""

    @property
    def is_okay(self) -> bool:
        return self.status == Status.OKAY

    @property
    def text(self) -> str:
        """Payload decoded as text."""
        return self.payload.decode("ascii", errors="replace")


def encode_command(command: str, argument: Optional[str] = None) -> bytes:
    """
    Encode an ASCII command.

    Args:
        command: Command name (e.g. "getvar")
        argument: Optional argument, joined with ':'

    Returns:
        Command bytes, without length prefix or terminator
    """
    if argument is not None:
        command = f"{command}:{argument}"
    return command.encode("ascii")


def encode_getvar(name: str) -> bytes:
    """Encode a getvar:<name> command."""
    return encode_command("getvar", name)


def encode_download(size: int) -> bytes:
    """
    Encode a download:<size> command.

    Args:
        size: Payload length in bytes

    Returns:
        Command bytes with the size as 8 lowercase hex digits

    Raises:
        PayloadTooLarge: If size does not fit in 32 bits
    """
    if size < 0:
        raise ValueError("Download size cannot be negative")
    if size > MAX_DOWNLOAD_SIZE:
        raise PayloadTooLarge(size)
    return encode_command("download", f"{size:08x}")


def encode_flash(partition: str) -> bytes:
    """Encode a flash:<partition> command."""
    return encode_command("flash", partition)


def encode_boot() -> bytes:
    """Encode a boot command."""
    return encode_command("boot")


def decode_response(data: bytes) -> ResponseFrame:
    """
    Decode one inbound transfer.

    Args:
        data: Raw bytes of a single USB read

    Returns:
        ResponseFrame; unknown tags yield Status.UNKNOWN

    Raises:
        MalformedFrame: If fewer than 4 bytes were received
    """
    data = bytes(data)
    if len(data) < TAG_SIZE:
        raise MalformedFrame(data)

    tag = data[:TAG_SIZE]
    return ResponseFrame(
        status=_TAGS.get(tag, Status.UNKNOWN),
        payload=data[TAG_SIZE:],
        tag=tag,
    )


def iter_chunks(data: bytes, chunk_size: int = DOWNLOAD_CHUNK_SIZE):
    """Yield consecutive slices [i, min(i + chunk_size, len(data)))."""
    for offset in range(0, len(data), chunk_size):
        yield data[offset:offset + chunk_size]
