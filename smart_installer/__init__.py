"""Smart installer for Linux bundles.

Core design goals:
- Verify every shipped artifact before touching the system
- Classify the host into a closed set of distro families
- Explicit user overrides always win; no silent substitution
- Dry-run shows exactly what would run
- One timestamped session log per run
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
