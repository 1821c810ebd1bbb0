# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Tests for Fastboot device discovery."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import usb.core

from fastboot_protocol.errors import DeviceNotFound, TransportError
from fastboot_protocol.locator import (
    find_device,
    find_devices,
    is_fastboot_device,
    is_fastboot_interface,
)


def make_intf(number, cls, subclass, protocol):
    return SimpleNamespace(
        bInterfaceNumber=number,
        bInterfaceClass=cls,
        bInterfaceSubClass=subclass,
        bInterfaceProtocol=protocol,
    )


FASTBOOT_INTF = make_intf(0, 0xFF, 0x42, 0x03)
ADB_INTF = make_intf(0, 0xFF, 0x42, 0x01)
MASS_STORAGE_INTF = make_intf(0, 0x08, 0x06, 0x50)


class FakeUsbDevice:
    """Iterable like a PyUSB device: configurations of interface descriptors."""

    def __init__(self, serial, configs, vid=0x18D1, pid=0x4EE0):
        self._serial = serial
        self.configs = configs
        self.idVendor = vid
        self.idProduct = pid

    def __iter__(self):
        return iter(self.configs)

    @property
    def serial_number(self):
        if isinstance(self._serial, Exception):
            raise self._serial
        return self._serial


def fake_find(devices):
    def find(find_all=False, custom_match=None, backend=None):
        return iter([d for d in devices if custom_match is None or custom_match(d)])
    return find


@pytest.fixture
def usb_bus(fake_transport):
    """Patch USB enumeration and interface claiming."""
    devices = []
    opened = []

    def open_transport(dev, timeout=None):
        if getattr(dev, "claim_fails", False):
            raise TransportError("claim", "Resource busy")
        transport = fake_transport()
        transport.timeout = timeout
        opened.append((dev, transport))
        return transport

    with patch('fastboot_protocol.locator.usb.core.find', side_effect=fake_find(devices)), \
            patch('fastboot_protocol.locator.UsbTransport.open', side_effect=open_transport):
        yield SimpleNamespace(devices=devices, opened=opened)


class TestSignatureMatch:
    """Tests for the Fastboot interface signature."""

    def test_fastboot_interface(self):
        assert is_fastboot_interface(FASTBOOT_INTF) is True

    def test_other_interfaces(self):
        assert is_fastboot_interface(ADB_INTF) is False
        assert is_fastboot_interface(MASS_STORAGE_INTF) is False

    def test_device_with_fastboot_interface(self):
        dev = FakeUsbDevice("A", [[MASS_STORAGE_INTF, make_intf(1, 0xFF, 0x42, 0x03)]])
        assert is_fastboot_device(dev) is True

    def test_device_in_second_configuration(self):
        dev = FakeUsbDevice("A", [[MASS_STORAGE_INTF], [FASTBOOT_INTF]])
        assert is_fastboot_device(dev) is True

    def test_device_without_fastboot_interface(self):
        dev = FakeUsbDevice("A", [[MASS_STORAGE_INTF, make_intf(1, 0xFF, 0x42, 0x01)]])
        assert is_fastboot_device(dev) is False

    def test_only_first_alt_setting_checked(self):
        """A matching second alternate setting is not seen."""
        dev = FakeUsbDevice("A", [[ADB_INTF, FASTBOOT_INTF]])
        assert is_fastboot_device(dev) is False


class TestFindDevices:
    """Tests for find_devices."""

    def test_filters_by_signature(self, usb_bus):
        """Only the device with the Fastboot signature is returned."""
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))
        usb_bus.devices.append(FakeUsbDevice("MS001", [[MASS_STORAGE_INTF]]))

        handles = find_devices()

        assert [h.serial for h in handles] == ["FB001"]
        assert len(usb_bus.opened) == 1

    def test_empty(self, usb_bus):
        """No match is an empty list, not an error."""
        usb_bus.devices.append(FakeUsbDevice("MS001", [[MASS_STORAGE_INTF]]))
        assert find_devices() == []

    def test_skips_unclaimable(self, usb_bus):
        """Devices that cannot be claimed are skipped."""
        busy = FakeUsbDevice("FB001", [[FASTBOOT_INTF]])
        busy.claim_fails = True
        usb_bus.devices.append(busy)
        usb_bus.devices.append(FakeUsbDevice("FB002", [[FASTBOOT_INTF]]))

        assert [h.serial for h in find_devices()] == ["FB002"]

    def test_skips_unreadable_descriptors(self, usb_bus):
        """A device whose descriptors cannot be read does not abort enumeration."""
        class UnreadableDevice(FakeUsbDevice):
            def __iter__(self):
                raise usb.core.USBError("Entity not found")

        usb_bus.devices.append(UnreadableDevice("BAD01", []))
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))

        assert [h.serial for h in find_devices()] == ["FB001"]

    def test_skips_unreadable_serial(self, usb_bus):
        usb_bus.devices.append(FakeUsbDevice(ValueError("The device has no langid"), [[FASTBOOT_INTF]]))
        assert find_devices() == []
        assert usb_bus.opened == []

    def test_timeout_passed_to_transport(self, usb_bus):
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))
        handle = find_devices(timeout=3000)[0]
        assert handle.transport.timeout == 3000

    def test_enumeration_failure(self):
        """Failure to enumerate at all is a TransportError."""
        with patch('fastboot_protocol.locator.usb.core.find',
                   side_effect=usb.core.NoBackendError("No backend available")):
            with pytest.raises(TransportError, match="enumeration"):
                find_devices()


class TestFindDevice:
    """Tests for find_device."""

    def test_by_serial(self, usb_bus):
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))
        usb_bus.devices.append(FakeUsbDevice("MS001", [[MASS_STORAGE_INTF]]))

        handle = find_device("FB001")

        assert handle.serial == "FB001"

    def test_closes_other_handles(self, usb_bus):
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))
        usb_bus.devices.append(FakeUsbDevice("FB002", [[FASTBOOT_INTF]]))

        handle = find_device("FB002")

        closes = {dev._serial: t.close_count for dev, t in usb_bus.opened}
        assert handle.serial == "FB002"
        assert closes == {"FB001": 1, "FB002": 0}

    def test_unknown_serial(self, usb_bus):
        usb_bus.devices.append(FakeUsbDevice("FB001", [[FASTBOOT_INTF]]))

        with pytest.raises(DeviceNotFound, match="XYZ") as exc:
            find_device("XYZ")
        assert exc.value.serial == "XYZ"
        assert usb_bus.opened[0][1].close_count == 1

    def test_no_devices(self, usb_bus):
        with pytest.raises(DeviceNotFound):
            find_device("FB001")
