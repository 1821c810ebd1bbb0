#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Fastboot host tool.

Usage:
    python fastboot_tool.py devices
    python fastboot_tool.py --serial 0123456789ABCDEF getvar version
    python fastboot_tool.py flash boot boot.img
    python fastboot_tool.py boot boot.img

Requirements:
    pip install pyusb
"""

import argparse
import logging
import sys
from pathlib import Path

from fastboot_protocol import FastbootDevice, find_device, find_devices
from fastboot_protocol.errors import DeviceNotFound, FastbootError


def progress(sent: int, total: int):
    pct = sent * 100 // total if total else 100
    print(f"\rSending: {pct:3d}% ({sent}/{total} bytes)", end="", flush=True)


def cmd_devices(args) -> int:
    """List attached Fastboot devices."""
    handles = find_devices(timeout=args.timeout)
    for handle in handles:
        print(f"{handle.serial}\tfastboot")
        handle.close()
    return 0


def cmd_getvar(dev: FastbootDevice, name: str) -> int:
    """Print a bootloader variable."""
    print(f"{name}: {dev.get_variable(name)}")
    return 0


def cmd_download(dev: FastbootDevice, path: Path) -> int:
    """Download a file into the device's buffer."""
    payload = path.read_bytes()
    print(f"Image: {path} ({len(payload)} bytes)")
    dev.download(payload, progress_callback=progress)
    print("\rSending: 100% - Complete!          ")
    return 0


def cmd_flash(dev: FastbootDevice, partition: str, path: Path) -> int:
    """Flash a partition."""
    print(f"Image:  {path}")
    print(f"Target: {partition}")
    size = dev.flash_file(partition, path, progress_callback=progress)
    print(f"\rFlashed {size} bytes to '{partition}'          ")
    return 0


def cmd_boot(dev: FastbootDevice, path: Path) -> int:
    """Download and boot an image."""
    print(f"Image: {path}")
    dev.boot_file(path, progress_callback=progress)
    print("\rBooting...                              ")
    return 0


def open_device(args) -> FastbootDevice:
    """Open the device named by --serial, or the first one found."""
    if args.serial:
        return find_device(args.serial, timeout=args.timeout)

    handles = find_devices(timeout=args.timeout)
    if not handles:
        raise DeviceNotFound()
    for extra in handles[1:]:
        extra.close()
    return handles[0]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Host tool for Fastboot bootloaders"
    )
    parser.add_argument(
        "--serial", "-s",
        default=None,
        help="Serial number of the device (default: first device found)"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=int,
        default=None,
        help="USB transfer timeout in milliseconds"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log protocol traffic"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # devices command
    subparsers.add_parser("devices", help="List attached Fastboot devices")

    # getvar command
    getvar_parser = subparsers.add_parser("getvar", help="Read a bootloader variable")
    getvar_parser.add_argument("name", help="Variable name")

    # download command
    download_parser = subparsers.add_parser("download", help="Download a file to the device")
    download_parser.add_argument("file", type=Path, help="Image file")

    # flash command
    flash_parser = subparsers.add_parser("flash", help="Flash a partition")
    flash_parser.add_argument("partition", help="Partition name")
    flash_parser.add_argument("file", type=Path, help="Image file")

    # boot command
    boot_parser = subparsers.add_parser("boot", help="Download and boot an image")
    boot_parser.add_argument("file", type=Path, help="Image file")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if getattr(args, "file", None) is not None and not args.file.exists():
        print(f"Error: File not found: {args.file}")
        return 1

    try:
        if args.command == "devices":
            return cmd_devices(args)

        with open_device(args) as dev:
            if args.command == "getvar":
                return cmd_getvar(dev, args.name)
            elif args.command == "download":
                return cmd_download(dev, args.file)
            elif args.command == "flash":
                return cmd_flash(dev, args.partition, args.file)
            elif args.command == "boot":
                return cmd_boot(dev, args.file)
    except FastbootError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
