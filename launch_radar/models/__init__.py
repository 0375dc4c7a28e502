from launch_radar.models.base import Base
from launch_radar.models.report import MonitoredReport

__all__ = [
    "Base",
    "MonitoredReport",
]
