"""
Host introspection: OS, CPU, RAM and storage details for the report header,
plus the writable-test-directory check that gates the disk probes.

Everything here is best effort; a field that cannot be read is reported as
"unknown" (or 0, or omitted for the single-board computer extras).
"""

from __future__ import annotations
import glob
import logging
import os
import platform
import socket
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional

import psutil

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class PrerequisiteError(RuntimeError):
    """The host cannot run the benchmark (e.g. unwritable test directory)."""


@dataclass
class SystemInfo:
    hostname: str = UNKNOWN
    serial_number: str = UNKNOWN
    os: str = UNKNOWN
    os_version: str = ""
    architecture: str = UNKNOWN
    cpu_model: str = UNKNOWN
    cpu_cores: int = 0
    ram_total_mb: int = 0
    disk_model: str = UNKNOWN
    # Raspberry Pi and similar boards; empty when not available
    board_model: str = ""
    kernel_version: str = ""
    gpu_firmware: str = ""
    bootloader_version: str = ""
    cpu_governor: str = ""
    cpu_freq_mhz: int = 0
    core_voltage: str = ""

    def to_dict(self) -> Dict:
        # board extras are left out when empty
        return {k: v for k, v in asdict(self).items() if v not in ("", 0) or k in _CORE_FIELDS}


_CORE_FIELDS = (
    "hostname", "serial_number", "os", "os_version", "architecture",
    "cpu_model", "cpu_cores", "ram_total_mb", "disk_model",
)


def _read(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read().replace("\x00", "").strip()
    except OSError:
        return None


def _vcgencmd(*args: str) -> str:
    try:
        out = subprocess.run(["vcgencmd", *args], capture_output=True, text=True, timeout=5, check=True)
    except (OSError, subprocess.SubprocessError):
        return ""
    return out.stdout.strip()


def detect_os() -> tuple:
    name, version = "", ""
    text = _read("/etc/os-release") or ""
    for line in text.splitlines():
        if line.startswith("NAME="):
            name = line[len("NAME="):].strip('"')
        elif line.startswith("VERSION_ID="):
            version = line[len("VERSION_ID="):].strip('"')
    return name or platform.system().lower() or UNKNOWN, version


def detect_serial_number() -> str:
    for path in ("/sys/firmware/devicetree/base/serial-number", "/proc/device-tree/serial-number"):
        serial = _read(path)
        if serial:
            return serial
    for line in (_read("/proc/cpuinfo") or "").splitlines():
        if line.startswith("Serial"):
            _, _, value = line.partition(":")
            return value.strip()
    return _read("/etc/machine-id") or UNKNOWN


def detect_cpu_model() -> str:
    for line in (_read("/proc/cpuinfo") or "").splitlines():
        for prefix in ("model name", "Model", "Hardware", "CPU implementer"):
            if line.startswith(prefix):
                _, _, value = line.partition(":")
                if value.strip():
                    return value.strip()
    return platform.processor() or (f"{platform.machine()} processor" if platform.machine() else UNKNOWN)


def detect_ram_mb() -> int:
    return int(psutil.virtual_memory().total // (1024 * 1024))


def detect_disk_model() -> str:
    """First NVMe, then SD card, then SATA/SCSI device model found under /sys/block."""
    for dev in sorted(glob.glob("/sys/block/nvme*")):
        model = _read(os.path.join(dev, "device", "model"))
        if model:
            return model
    for dev in sorted(glob.glob("/sys/block/mmcblk*")):
        name = _read(os.path.join(dev, "device", "name"))
        if name:
            return f"SD Card: {name}"
    for dev in sorted(glob.glob("/sys/block/sd*")):
        model = _read(os.path.join(dev, "device", "model"))
        if model:
            return model
    return UNKNOWN


def detect_cpu_freq_mhz() -> int:
    khz = _read("/sys/devices/system/cpu/cpu0/cpufreq/scaling_cur_freq")
    if khz and khz.isdigit():
        return int(khz) // 1000
    freq = psutil.cpu_freq()
    return int(freq.current) if freq else 0


def detect() -> SystemInfo:
    """Collect host information for the report."""
    os_name, os_version = detect_os()
    firmware = _vcgencmd("version").splitlines()
    bootloader = _vcgencmd("bootloader_version").splitlines()
    return SystemInfo(
        hostname=socket.gethostname() or UNKNOWN,
        serial_number=detect_serial_number(),
        os=os_name,
        os_version=os_version,
        architecture=platform.machine() or UNKNOWN,
        cpu_model=detect_cpu_model(),
        cpu_cores=psutil.cpu_count(logical=True) or os.cpu_count() or 0,
        ram_total_mb=detect_ram_mb(),
        disk_model=detect_disk_model(),
        board_model=_read("/proc/device-tree/model") or "",
        kernel_version=platform.release(),
        gpu_firmware=firmware[0].strip() if firmware else "",
        bootloader_version=bootloader[0].strip() if bootloader else "",
        cpu_governor=_read("/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor") or "",
        cpu_freq_mhz=detect_cpu_freq_mhz(),
        core_voltage=_vcgencmd("measure_volts", "core").removeprefix("volt="),
    )


def check_prerequisites(test_dir: str) -> None:
    """Make sure ``test_dir`` exists (creating it) and is writable.

    Raises:
        PrerequisiteError: the directory cannot be created or written to.
    """
    path = Path(test_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PrerequisiteError(f"cannot create test directory {path}: {e}") from e

    probe = path / ".nodebench_test"
    try:
        probe.write_bytes(b"")
        probe.unlink()
    except OSError as e:
        raise PrerequisiteError(f"cannot write to test directory {path}: {e}") from e
    logger.debug(f"test directory {path} is writable")
