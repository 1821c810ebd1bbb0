# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Fastboot device discovery.

Devices are matched structurally on the Fastboot interface signature
(class 0xFF, subclass 0x42, protocol 0x03) rather than by vendor and
product ID.
"""

import logging
from typing import List, Optional

import usb.core

from .device import FastbootDevice
from .errors import DeviceNotFound, TransportError
from .protocol import FASTBOOT_CLASS, FASTBOOT_PROTOCOL, FASTBOOT_SUBCLASS
from .transport import UsbTransport

logger = logging.getLogger(__name__)


def is_fastboot_interface(intf) -> bool:
    """True if an interface descriptor carries the Fastboot signature."""
    return (
        intf.bInterfaceClass == FASTBOOT_CLASS
        and intf.bInterfaceSubClass == FASTBOOT_SUBCLASS
        and intf.bInterfaceProtocol == FASTBOOT_PROTOCOL
    )


def is_fastboot_device(dev) -> bool:
    """
    True if any interface of any configuration exposes the Fastboot signature.

    PyUSB lists every alternate setting as its own interface descriptor;
    only the first one seen for each interface number is checked.
    """
    for cfg in dev:
        seen = set()
        for intf in cfg:
            if intf.bInterfaceNumber in seen:
                continue
            seen.add(intf.bInterfaceNumber)
            if is_fastboot_interface(intf):
                return True
    return False


def _matches(dev) -> bool:
    """is_fastboot_device, treating unreadable descriptors as no match."""
    try:
        return is_fastboot_device(dev)
    except usb.core.USBError as e:
        logger.warning("Skipping device %04x:%04x: cannot read descriptors (%s)",
                       dev.idVendor, dev.idProduct, e)
        return False


def find_devices(backend=None, timeout: Optional[int] = None) -> List[FastbootDevice]:
    """
    Open every attached Fastboot device.

    Args:
        backend: Optional PyUSB backend
        timeout: Transfer timeout in milliseconds for the returned handles

    Returns:
        Handles for all devices that could be claimed; possibly empty

    Raises:
        TransportError: If USB enumeration itself fails
    """
    try:
        devs = list(usb.core.find(find_all=True, custom_match=_matches,
                                  backend=backend))
    except (usb.core.USBError, usb.core.NoBackendError) as e:
        raise TransportError("enumeration", e) from e

    handles = []
    for dev in devs:
        try:
            serial = dev.serial_number or ""
        except (usb.core.USBError, ValueError) as e:
            logger.warning("Skipping device %04x:%04x: cannot read serial number (%s)",
                           dev.idVendor, dev.idProduct, e)
            continue

        try:
            transport = UsbTransport.open(dev, timeout=timeout)
        except TransportError as e:
            logger.warning("Skipping device %s: %s", serial, e)
            continue

        logger.info("Found Fastboot device %s (%04x:%04x)", serial, dev.idVendor, dev.idProduct)
        handles.append(FastbootDevice(transport, serial))

    return handles


def find_device(serial: str, backend=None, timeout: Optional[int] = None) -> FastbootDevice:
    """
    Open the Fastboot device with the given serial number.

    Handles for the other devices found along the way are closed.

    Raises:
        DeviceNotFound: If no attached Fastboot device has this serial
    """
    found = None
    for handle in find_devices(backend=backend, timeout=timeout):
        if found is None and handle.serial == serial:
            found = handle
        else:
            handle.close()

    if found is None:
        raise DeviceNotFound(serial)
    return found
