# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Fastboot protocol engine.

A FastbootDevice owns one bound Transport and runs each command as a
fresh request/response exchange on it. Exactly one read is performed per
expected frame; INFO frames are not drained.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from .errors import (
    BootFailed,
    DownloadIncomplete,
    DownloadRejected,
    FlashFailed,
    TransportError,
    VariableNotFound,
)
from .protocol import (
    DOWNLOAD_CHUNK_SIZE,
    ResponseFrame,
    Status,
    decode_response,
    encode_boot,
    encode_download,
    encode_flash,
    encode_getvar,
    iter_chunks,
)
from .transport import Transport

logger = logging.getLogger(__name__)


class FastbootDevice:
    """
    Handle to one open Fastboot device.

    Can be used as a context manager:
        with find_device("0123456789ABCDEF") as dev:
            print(dev.get_variable("product"))
    """

    def __init__(self, transport: Transport, serial: str = ""):
        self._transport = transport
        self.serial = serial
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"FastbootDevice(serial={self.serial!r})"

    def close(self):
        """Release the interface claim and the USB resources of this handle."""
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing device %s", self.serial)
        self._transport.close()

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def max_packet_size(self) -> int:
        """Max packet size of the outbound endpoint."""
        return self._transport.out_max_packet_size

    def send(self, data: bytes) -> None:
        """Send raw bytes in a single transfer."""
        logger.debug("send %s: %r", self.serial, data[:64])
        written = self._transport.write(data)
        if written != len(data):
            raise TransportError("write", f"short write {written}/{len(data)}", self.serial)

    def receive(self) -> ResponseFrame:
        """Read one transfer and decode it."""
        data = self._transport.read(self._transport.in_max_packet_size)
        frame = decode_response(data)
        logger.debug("recv %s: %s %r", self.serial, frame.status, frame.payload)
        return frame

    def get_variable(self, name: str) -> str:
        """
        Query a bootloader variable.

        Args:
            name: Variable name (e.g. "version", "product")

        Returns:
            Variable value as text

        Raises:
            VariableNotFound: If the device answers FAIL
        """
        self.send(encode_getvar(name))
        frame = self.receive()
        if frame.status == Status.FAIL:
            raise VariableNotFound(name, frame.payload)
        return frame.text

    def download(
        self,
        payload: bytes,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        """
        Transfer payload into the device's download buffer.

        Args:
            payload: Opaque image bytes
            progress_callback: Optional callback(bytes_sent, total_bytes)

        Raises:
            PayloadTooLarge: If the payload length does not fit in 32 bits
            DownloadRejected: If the device does not answer DATA
            DownloadIncomplete: If the device does not answer OKAY after the data
            TransportError: If any chunk fails to send
        """
        total = len(payload)
        self.send(encode_download(total))

        frame = self.receive()
        if frame.status != Status.DATA:
            raise DownloadRejected(frame.status, frame.payload)

        sent = 0
        for chunk in iter_chunks(payload, DOWNLOAD_CHUNK_SIZE):
            self.send(chunk)
            sent += len(chunk)
            if progress_callback:
                progress_callback(sent, total)

        frame = self.receive()
        if not frame.is_okay:
            raise DownloadIncomplete(frame.status, frame.payload)
        logger.info("Downloaded %d bytes to %s", total, self.serial)

    def flash(self, partition: str, payload: bytes,
              progress_callback: Optional[Callable[[int, int], None]] = None) -> None:
        """
        Download payload and write it to a partition.

        Raises:
            FlashFailed: If flash:<partition> is not acknowledged with OKAY
        """
        self.download(payload, progress_callback)
        self.send(encode_flash(partition))
        frame = self.receive()
        if not frame.is_okay:
            raise FlashFailed(partition, frame.status, frame.payload)
        logger.info("Flashed partition %s on %s", partition, self.serial)

    def boot_image(self, payload: bytes,
                   progress_callback: Optional[Callable[[int, int], None]] = None) -> None:
        """
        Download payload and boot it.

        Raises:
            BootFailed: If boot is not acknowledged with OKAY
        """
        self.download(payload, progress_callback)
        self.send(encode_boot())
        frame = self.receive()
        if not frame.is_okay:
            raise BootFailed(frame.status, frame.payload)
        logger.info("Booted image on %s", self.serial)

    def flash_file(self, partition: str, path: Path,
                   progress_callback: Optional[Callable[[int, int], None]] = None) -> int:
        """
        Flash a partition from a file.

        Returns:
            Number of bytes flashed

        Raises:
            FileNotFoundError: If the image file does not exist
        """
        payload = Path(path).read_bytes()
        self.flash(partition, payload, progress_callback)
        return len(payload)

    def boot_file(self, path: Path,
                  progress_callback: Optional[Callable[[int, int], None]] = None) -> int:
        """Boot an image read from a file. Returns the image size."""
        payload = Path(path).read_bytes()
        self.boot_image(payload, progress_callback)
        return len(payload)
