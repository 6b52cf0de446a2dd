"""Metrics service - samples host resources and daemon liveness"""

import psutil

from ..config import CLOUDFLARED_BIN, CPU_SAMPLE_INTERVAL, DISK_PATH, get_logger
from ..models.schemas import SystemInfo, UsageStats

logger = get_logger(__name__)


def bytes_to_gb(bytes_val: float) -> float:
    """Convert bytes to GB"""
    return round(bytes_val / (1024 ** 3), 2)


class SystemMetricsCollector:
    """Read-only host metrics; never raises"""

    def __init__(
        self,
        process_name: str = CLOUDFLARED_BIN,
        cpu_interval: float = CPU_SAMPLE_INTERVAL,
        disk_path: str = DISK_PATH,
    ):
        # Match on the executable's base name even when configured as a path
        self.process_name = process_name.rsplit("/", 1)[-1]
        self.cpu_interval = cpu_interval
        self.disk_path = disk_path

    def daemon_running(self) -> bool:
        """Check if any daemon processes are running"""
        try:
            for proc in psutil.process_iter(["name"]):
                try:
                    name = proc.info.get("name") or ""
                    if self.process_name in name:
                        return True
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    continue
        except psutil.Error as e:
            logger.warning(f"Failed to scan processes: {e}")
        return False

    def snapshot(self, authenticated: bool = False, auth_in_progress: bool = False) -> SystemInfo:
        """Sample CPU, memory and disk

        Returns:
            SystemInfo, or the conservative default if sampling fails
        """
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage(self.disk_path)

            return SystemInfo(
                cpu_percent=psutil.cpu_percent(interval=self.cpu_interval),
                memory=UsageStats(
                    percent=memory.percent,
                    used=bytes_to_gb(memory.used),
                    total=bytes_to_gb(memory.total)
                ),
                disk=UsageStats(
                    percent=round((disk.used / disk.total) * 100, 1) if disk.total else 0.0,
                    used=bytes_to_gb(disk.used),
                    total=bytes_to_gb(disk.total)
                ),
                daemon_running=self.daemon_running(),
                authenticated=authenticated,
                auth_in_progress=auth_in_progress
            )
        except Exception as e:
            logger.error(f"Error getting system info: {e}")
            return SystemInfo(auth_in_progress=auth_in_progress)
