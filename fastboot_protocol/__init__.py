# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Fastboot Protocol - Python host client library.

This package locates devices running a Fastboot bootloader over USB and
talks to them using the Fastboot request/response protocol.

Example usage:
    from fastboot_protocol import find_device

    with find_device("0123456789ABCDEF") as dev:
        print(f"Product: {dev.get_variable('product')}")

        dev.flash(
            "boot",
            image,
            progress_callback=lambda sent, total: print(f"{sent}/{total}"),
        )
"""

from .device import FastbootDevice
from .errors import (
    FastbootError,
    TransportError,
    MalformedFrame,
    DeviceNotFound,
    VariableNotFound,
    PayloadTooLarge,
    DownloadRejected,
    DownloadIncomplete,
    FlashFailed,
    BootFailed,
)
from .locator import find_devices, find_device, is_fastboot_device
from .protocol import (
    Status,
    ResponseFrame,
    DOWNLOAD_CHUNK_SIZE,
    encode_command,
    encode_getvar,
    encode_download,
    encode_flash,
    encode_boot,
    decode_response,
)
from .transport import Transport, UsbTransport

__version__ = "0.1.0"

__all__ = [
    # Device handle / protocol engine
    "FastbootDevice",
    # Discovery
    "find_devices",
    "find_device",
    "is_fastboot_device",
    # Protocol types
    "Status",
    "ResponseFrame",
    "DOWNLOAD_CHUNK_SIZE",
    # Protocol encoding
    "encode_command",
    "encode_getvar",
    "encode_download",
    "encode_flash",
    "encode_boot",
    "decode_response",
    # Transport
    "Transport",
    "UsbTransport",
    # Errors
    "FastbootError",
    "TransportError",
    "MalformedFrame",
    "DeviceNotFound",
    "VariableNotFound",
    "PayloadTooLarge",
    "DownloadRejected",
    "DownloadIncomplete",
    "FlashFailed",
    "BootFailed",
]
