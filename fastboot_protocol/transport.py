# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Transport layer for Fastboot communication.

A Transport is a pair of unidirectional bulk endpoints, one outbound and
one inbound, each with its own maximum packet size. UsbTransport binds
the pair to a claimed PyUSB interface.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import usb.core
import usb.util

from .errors import TransportError
from .protocol import ENDPOINT_IN, ENDPOINT_OUT

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Abstract bulk endpoint pair.

    Implementations raise TransportError when a write or read fails.
    """

    @property
    @abstractmethod
    def in_max_packet_size(self) -> int:
        """Max packet size of the inbound endpoint."""

    @property
    @abstractmethod
    def out_max_packet_size(self) -> int:
        """Max packet size of the outbound endpoint."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Blocking write to the outbound endpoint. Returns bytes written."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Blocking read of at most size bytes from the inbound endpoint."""

    def close(self) -> None:
        """Release any resources held by the transport."""


class UsbTransport(Transport):
    """
    Bulk endpoint pair on a claimed USB interface.

    Use UsbTransport.open() to claim the default interface of a device and
    resolve its Fastboot endpoints.
    """

    def __init__(
        self,
        dev: usb.core.Device,
        interface: int,
        ep_out,
        ep_in,
        timeout: Optional[int] = None,
    ):
        """
        Args:
            dev: PyUSB device
            interface: Claimed interface number
            ep_out: Bulk OUT endpoint descriptor
            ep_in: Bulk IN endpoint descriptor
            timeout: Transfer timeout in milliseconds (None for PyUSB default)
        """
        self._dev = dev
        self._interface = interface
        self._ep_out = ep_out
        self._ep_in = ep_in
        self.timeout = timeout
        self._closed = False

    @classmethod
    def open(cls, dev: usb.core.Device, timeout: Optional[int] = None) -> "UsbTransport":
        """
        Claim the default interface of dev and resolve its endpoints.

        Raises:
            TransportError: If the interface cannot be claimed or the
                bulk endpoints 0x01/0x81 are missing
        """
        name = _describe(dev)
        try:
            try:
                cfg = dev.get_active_configuration()
            except usb.core.USBError:
                dev.set_configuration()
                cfg = dev.get_active_configuration()
            intf = cfg[(0, 0)]
            number = intf.bInterfaceNumber

            try:
                if dev.is_kernel_driver_active(number):
                    dev.detach_kernel_driver(number)
                    logger.debug("Detached kernel driver from interface %d", number)
            except NotImplementedError:
                pass

            usb.util.claim_interface(dev, number)
        except usb.core.USBError as e:
            usb.util.dispose_resources(dev)
            raise TransportError("claim", e, name) from e

        ep_out = usb.util.find_descriptor(intf, bEndpointAddress=ENDPOINT_OUT)
        ep_in = usb.util.find_descriptor(intf, bEndpointAddress=ENDPOINT_IN)
        if ep_out is None or ep_in is None:
            _release(dev, number)
            raise TransportError("endpoint lookup", "bulk endpoints 0x01/0x81 not found", name)

        logger.debug("Claimed %s interface %d (EP OUT=0x%02x, EP IN=0x%02x)",
                     name, number, ENDPOINT_OUT, ENDPOINT_IN)
        return cls(dev, number, ep_out, ep_in, timeout)

    @property
    def device(self) -> usb.core.Device:
        return self._dev

    @property
    def in_max_packet_size(self) -> int:
        return self._ep_in.wMaxPacketSize

    @property
    def out_max_packet_size(self) -> int:
        return self._ep_out.wMaxPacketSize

    def write(self, data: bytes) -> int:
        try:
            return self._ep_out.write(data, timeout=self.timeout)
        except usb.core.USBError as e:
            raise TransportError("write", e, _describe(self._dev)) from e

    def read(self, size: int) -> bytes:
        try:
            return bytes(self._ep_in.read(size, timeout=self.timeout))
        except usb.core.USBError as e:
            raise TransportError("read", e, _describe(self._dev)) from e

    def close(self) -> None:
        """Release the interface claim and the device's USB resources."""
        if self._closed:
            return
        self._closed = True
        _release(self._dev, self._interface)


def _release(dev, interface: int) -> None:
    """Release a claimed interface and dispose of the device's resources."""
    try:
        usb.util.release_interface(dev, interface)
    except usb.core.USBError as e:
        # Device already gone; the claim dies with it
        logger.warning("Failed to release interface %d on %s: %s",
                       interface, _describe(dev), e)
    finally:
        usb.util.dispose_resources(dev)


def _describe(dev) -> str:
    """Short bus/address label for log and error messages."""
    return f"USB {getattr(dev, 'bus', '?')}:{getattr(dev, 'address', '?')}"
