"""
Host resource sampling with psutil.

    sample = sample_system_metrics(["/", "/data"], cpu_interval=0.2)
    sample.cpu_usage        # percent, averaged over the interval
    sample.used_memory      # bytes

Memory, swap and disk figures are in bytes.
"""

from dataclasses import dataclass
from typing import Iterable
import logging

import psutil


logger = logging.getLogger(__name__)

# Shortest interval over which CPU usage is meaningful
DEFAULT_CPU_INTERVAL = 0.2


@dataclass
class SystemMetrics:
    cpu_usage: float
    total_memory: int
    used_memory: int
    total_swap: int
    used_swap: int
    total_disks_space: int
    used_disks_usage: int


def disk_usage(mount_points: Iterable[str]) -> tuple[int, int]:
    """
    Total and used bytes summed over ``mount_points``.

    Used space is total minus what is still available to unprivileged
    users. Mount points that do not exist are skipped.
    """
    total = used = 0
    for mount_point in mount_points:
        try:
            usage = psutil.disk_usage(mount_point)
        except OSError as e:
            logger.debug(f"Skipping disk {mount_point}: {e}")
            continue
        total += usage.total
        used += usage.total - usage.free
    return total, used


def sample_system_metrics(
    mount_points: Iterable[str] = (),
    cpu_interval: float = DEFAULT_CPU_INTERVAL,
) -> SystemMetrics:
    """
    Take one sample of CPU, memory, swap and disk usage.

    CPU usage compares two readings ``cpu_interval`` seconds apart, so the
    calling thread sleeps for that long.
    """
    cpu = psutil.cpu_percent(interval=cpu_interval)
    memory = psutil.virtual_memory()
    swap = psutil.swap_memory()
    total_disks, used_disks = disk_usage(mount_points)

    return SystemMetrics(
        cpu_usage=cpu,
        total_memory=memory.total,
        used_memory=memory.used,
        total_swap=swap.total,
        used_swap=swap.used,
        total_disks_space=total_disks,
        used_disks_usage=used_disks,
    )
