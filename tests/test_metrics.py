"""Tests for sysdash.metrics."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sysdash.metrics import (
    CpuRecord,
    MetricsProvider,
    collect_cpus,
    collect_snapshot,
    is_supported_system,
    parse_cpuinfo,
    read_os_identity,
)

CPUINFO = """\
processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8550U CPU @ 1.80GHz
cpu MHz\t\t: 1992.000

processor\t: 1
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8550U CPU @ 1.80GHz
cpu MHz\t\t: 2001.000

"""


def _freq(current: float) -> MagicMock:
    m = MagicMock()
    m.current = current
    return m


# ── parse_cpuinfo ──────────────────────────────────────────────────────────


class TestParseCpuinfo:
    def test_one_block_per_processor(self) -> None:
        blocks = parse_cpuinfo(CPUINFO)
        assert len(blocks) == 2
        assert blocks[0]["vendor_id"] == "GenuineIntel"
        assert blocks[1]["processor"] == "1"

    def test_value_with_colon_kept_whole(self) -> None:
        blocks = parse_cpuinfo("processor : 0\nmodel name : A: B\n")
        assert blocks[0]["model name"] == "A: B"

    def test_trailing_hardware_block_dropped(self) -> None:
        text = "processor : 0\nBogoMIPS : 38.40\n\nHardware : BCM2835\nRevision : a02082\n"
        blocks = parse_cpuinfo(text)
        assert len(blocks) == 1

    def test_empty(self) -> None:
        assert parse_cpuinfo("") == []


# ── collect_cpus ───────────────────────────────────────────────────────────


@patch("sysdash.metrics._read_cpuinfo")
@patch("sysdash.metrics.psutil")
def test_collect_cpus_per_cpu(mock_psutil: MagicMock, mock_info: MagicMock) -> None:
    mock_psutil.cpu_count.return_value = 2
    mock_psutil.cpu_freq.return_value = [_freq(1992.4), _freq(2400.6)]
    mock_info.return_value = parse_cpuinfo(CPUINFO)

    cpus = collect_cpus()

    assert cpus == (
        CpuRecord("cpu0", 1992, "Intel(R) Core(TM) i7-8550U CPU @ 1.80GHz", "GenuineIntel"),
        CpuRecord("cpu1", 2401, "Intel(R) Core(TM) i7-8550U CPU @ 1.80GHz", "GenuineIntel"),
    )


@patch("sysdash.metrics.platform")
@patch("sysdash.metrics._read_cpuinfo", return_value=[])
@patch("sysdash.metrics.psutil")
def test_collect_cpus_single_frequency_and_no_cpuinfo(
    mock_psutil: MagicMock, mock_info: MagicMock, mock_platform: MagicMock
) -> None:
    mock_psutil.cpu_count.return_value = 3
    mock_psutil.cpu_freq.return_value = [_freq(3200.0)]
    mock_platform.processor.return_value = "arm"

    cpus = collect_cpus()

    assert [c.name for c in cpus] == ["cpu0", "cpu1", "cpu2"]
    assert {c.frequency for c in cpus} == {3200}
    assert {c.brand for c in cpus} == {"arm"}
    assert {c.vendor_id for c in cpus} == {""}


@patch("sysdash.metrics._read_cpuinfo", return_value=[])
@patch("sysdash.metrics.psutil")
def test_collect_cpus_frequency_unavailable(
    mock_psutil: MagicMock, mock_info: MagicMock
) -> None:
    mock_psutil.cpu_count.return_value = 1
    mock_psutil.cpu_freq.side_effect = NotImplementedError
    cpus = collect_cpus()
    assert cpus[0].frequency == 0


# ── read_os_identity ───────────────────────────────────────────────────────


@patch("sysdash.metrics.platform")
def test_os_identity_linux(mock_platform: MagicMock) -> None:
    mock_platform.system.return_value = "Linux"
    mock_platform.freedesktop_os_release.return_value = {
        "NAME": "Ubuntu",
        "VERSION_ID": "22.04",
    }
    mock_platform.release.return_value = "6.5.0-14-generic"
    mock_platform.node.return_value = "box"

    assert read_os_identity() == ("Ubuntu", "6.5.0-14-generic", "22.04", "box")


@patch("sysdash.metrics.platform")
def test_os_identity_linux_without_os_release(mock_platform: MagicMock) -> None:
    mock_platform.system.return_value = "Linux"
    mock_platform.freedesktop_os_release.side_effect = OSError
    mock_platform.release.return_value = "6.5.0"
    mock_platform.node.return_value = ""

    assert read_os_identity() == (None, "6.5.0", None, None)


@patch("sysdash.metrics.platform")
def test_os_identity_macos(mock_platform: MagicMock) -> None:
    mock_platform.system.return_value = "Darwin"
    mock_platform.mac_ver.return_value = ("14.2", ("", "", ""), "arm64")
    mock_platform.release.return_value = "23.2.0"
    mock_platform.node.return_value = "mac.local"

    assert read_os_identity() == ("Darwin", "23.2.0", "14.2", "mac.local")


# ── is_supported_system ────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ({"LINUX": True}, True),
        ({"MACOS": True}, True),
        ({"WINDOWS": True}, True),
        ({}, False),
    ],
)
def test_is_supported_system(flags: dict[str, bool], expected: bool) -> None:
    fake = MagicMock(spec=[])
    for name, value in flags.items():
        setattr(fake, name, value)
    with patch("sysdash.metrics.psutil", fake):
        assert is_supported_system() is expected


# ── collect_snapshot / MetricsProvider ─────────────────────────────────────


def _patch_host(mock_psutil: MagicMock, available: int = 6 * 1024**3) -> None:
    vm = MagicMock()
    vm.total = 16 * 1024**3
    vm.available = available
    vm.used = 1  # ignored: used memory is total - available
    mock_psutil.virtual_memory.return_value = vm

    sw = MagicMock()
    sw.total = 2 * 1024**3
    sw.used = 1024**2
    mock_psutil.swap_memory.return_value = sw


@patch("sysdash.metrics.collect_cpus", return_value=(CpuRecord("cpu0", 0, "", ""),))
@patch("sysdash.metrics.read_os_identity", return_value=("TestOS", None, None, "h"))
@patch("sysdash.metrics.psutil")
def test_collect_snapshot(
    mock_psutil: MagicMock, mock_ident: MagicMock, mock_cpus: MagicMock
) -> None:
    _patch_host(mock_psutil)
    snap = collect_snapshot()
    assert snap.total_memory == 16 * 1024**3
    assert snap.used_memory == 10 * 1024**3
    assert snap.total_swap == 2 * 1024**3
    assert snap.used_swap == 1024**2
    assert snap.os_name == "TestOS"
    assert snap.kernel_version is None
    assert snap.host_name == "h"
    assert len(snap.cpus) == 1


@patch("sysdash.metrics.collect_cpus", return_value=())
@patch("sysdash.metrics.read_os_identity", return_value=(None, None, None, None))
@patch("sysdash.metrics.psutil")
def test_provider_refresh_replaces_snapshot(
    mock_psutil: MagicMock, mock_ident: MagicMock, mock_cpus: MagicMock
) -> None:
    _patch_host(mock_psutil, available=6 * 1024**3)
    provider = MetricsProvider()
    first = provider.snapshot()
    assert provider.used_memory() == 10 * 1024**3

    _patch_host(mock_psutil, available=4 * 1024**3)
    provider.refresh_all()

    assert provider.snapshot() is not first
    assert provider.used_memory() == 12 * 1024**3
    assert provider.total_memory() == 16 * 1024**3
    assert provider.os_name() is None
    assert provider.cpus() == ()


@patch("sysdash.metrics.collect_cpus", return_value=())
@patch("sysdash.metrics.read_os_identity", return_value=(None, None, None, None))
@patch("sysdash.metrics.psutil")
def test_provider_refresh_is_stable(
    mock_psutil: MagicMock, mock_ident: MagicMock, mock_cpus: MagicMock
) -> None:
    _patch_host(mock_psutil)
    provider = MetricsProvider()
    first = provider.snapshot()
    provider.refresh_all()
    assert provider.snapshot() == first
