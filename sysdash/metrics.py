"""Host metrics for the dashboard.

``MetricsProvider`` holds one ``MetricsSnapshot`` at a time. Every call to
``refresh_all`` recomputes all of it from psutil, ``platform`` and
``/proc/cpuinfo`` and swaps the old snapshot out wholesale.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from pathlib import Path

import psutil

log = logging.getLogger(__name__)

_CPUINFO = Path("/proc/cpuinfo")

# psutil exposes one boolean per OS family it knows how to query
_PLATFORM_FLAGS = (
    "LINUX",
    "MACOS",
    "WINDOWS",
    "FREEBSD",
    "OPENBSD",
    "NETBSD",
    "SUNOS",
    "AIX",
)


# ── Data types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CpuRecord:
    """One logical CPU as shown on the dashboard."""

    name: str
    frequency: int  # MHz
    brand: str
    vendor_id: str


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """All host metrics from a single refresh."""

    total_memory: int
    used_memory: int
    total_swap: int
    used_swap: int
    os_name: str | None
    kernel_version: str | None
    os_version: str | None
    host_name: str | None
    cpus: tuple[CpuRecord, ...]


# ── Platform support ───────────────────────────────────────────────────────


def is_supported_system() -> bool:
    """True when psutil knows how to read metrics on this OS."""
    return any(getattr(psutil, flag, False) for flag in _PLATFORM_FLAGS)


# ── OS identity ────────────────────────────────────────────────────────────


def _nonempty(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _os_release() -> dict[str, str]:
    try:
        return platform.freedesktop_os_release()
    except OSError:
        return {}


def read_os_identity() -> tuple[str | None, str | None, str | None, str | None]:
    """Return ``(os_name, kernel_version, os_version, host_name)``.

    Any value the host does not report is ``None``.
    """
    system = platform.system()
    if system == "Linux":
        release = _os_release()
        os_name = release.get("NAME")
        os_version = release.get("VERSION_ID")
    elif system == "Darwin":
        os_name = "Darwin"
        os_version = platform.mac_ver()[0]
    elif system == "Windows":
        os_name = "Windows"
        os_version = platform.version()
    else:
        os_name = system
        os_version = platform.version()

    return (
        _nonempty(os_name),
        _nonempty(platform.release()),
        _nonempty(os_version),
        _nonempty(platform.node()),
    )


# ── CPUs ───────────────────────────────────────────────────────────────────


def parse_cpuinfo(text: str) -> list[dict[str, str]]:
    """Split ``/proc/cpuinfo`` into one ``key -> value`` dict per processor."""
    blocks: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if current:
                blocks.append(current)
                current = {}
            continue
        key, sep, value = line.partition(":")
        if sep:
            current[key.strip()] = value.strip()
    if current:
        blocks.append(current)
    # Trailing blocks without a processor number (ARM "Hardware", ...) are not CPUs
    return [b for b in blocks if "processor" in b]


def _read_cpuinfo() -> list[dict[str, str]]:
    try:
        return parse_cpuinfo(_CPUINFO.read_text(encoding="utf-8", errors="ignore"))
    except OSError:
        return []


def _read_frequencies() -> list[int]:
    """Current frequency per CPU in whole MHz; empty when unavailable."""
    try:
        freqs = psutil.cpu_freq(percpu=True)
    except (AttributeError, NotImplementedError, OSError):
        return []
    if not freqs:
        return []
    return [max(0, round(f.current)) for f in freqs]


def collect_cpus() -> tuple[CpuRecord, ...]:
    """Build one ``CpuRecord`` per logical CPU, in OS order."""
    count = psutil.cpu_count(logical=True) or 1
    freqs = _read_frequencies()
    info = _read_cpuinfo()
    fallback_brand = platform.processor()

    cpus: list[CpuRecord] = []
    for i in range(count):
        if i < len(freqs):
            freq = freqs[i]
        else:
            # Some platforms only report a single package-wide value
            freq = freqs[0] if freqs else 0
        block = info[i] if i < len(info) else {}
        cpus.append(
            CpuRecord(
                name=f"cpu{i}",
                frequency=freq,
                brand=block.get("model name", fallback_brand),
                vendor_id=block.get("vendor_id", ""),
            )
        )
    return tuple(cpus)


# ── Provider ───────────────────────────────────────────────────────────────


def collect_snapshot() -> MetricsSnapshot:
    """Gather every metric the dashboard shows in one pass."""
    ram = psutil.virtual_memory()
    swap = psutil.swap_memory()
    os_name, kernel_version, os_version, host_name = read_os_identity()
    return MetricsSnapshot(
        total_memory=ram.total,
        used_memory=ram.total - ram.available,
        total_swap=swap.total,
        used_swap=swap.used,
        os_name=os_name,
        kernel_version=kernel_version,
        os_version=os_version,
        host_name=host_name,
        cpus=collect_cpus(),
    )


class MetricsProvider:
    """Refreshable holder of the latest ``MetricsSnapshot``."""

    def __init__(self) -> None:
        self._snapshot = collect_snapshot()
        log.debug("metrics provider ready: %d cpus", len(self._snapshot.cpus))

    def refresh_all(self) -> None:
        """Replace the held snapshot with a freshly collected one."""
        self._snapshot = collect_snapshot()

    def snapshot(self) -> MetricsSnapshot:
        return self._snapshot

    def total_memory(self) -> int:
        return self._snapshot.total_memory

    def used_memory(self) -> int:
        return self._snapshot.used_memory

    def total_swap(self) -> int:
        return self._snapshot.total_swap

    def used_swap(self) -> int:
        return self._snapshot.used_swap

    def os_name(self) -> str | None:
        return self._snapshot.os_name

    def kernel_version(self) -> str | None:
        return self._snapshot.kernel_version

    def os_version(self) -> str | None:
        return self._snapshot.os_version

    def host_name(self) -> str | None:
        return self._snapshot.host_name

    def cpus(self) -> tuple[CpuRecord, ...]:
        return self._snapshot.cpus
