from .step_10_verify_checksums import VerifyChecksumsStep
from .step_20_detect_distro import DetectDistroStep
from .step_30_select_strategy import SelectStrategyStep
from .step_40_install import InstallStep
from .step_50_launch import LaunchStep

__all__ = [
    "VerifyChecksumsStep",
    "DetectDistroStep",
    "SelectStrategyStep",
    "InstallStep",
    "LaunchStep",
]
