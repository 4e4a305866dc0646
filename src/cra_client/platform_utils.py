"""Platform detection and cross-platform utilities for CRA Client"""

import os
import platform
import sys
from enum import Enum
from pathlib import Path

# Platform detection
IS_WINDOWS = sys.platform == "win32"
IS_LINUX = sys.platform.startswith("linux")
IS_MACOS = sys.platform == "darwin"

# Packaged (PyInstaller-style) executable
IS_FROZEN = bool(getattr(sys, "frozen", False))


class BuildProfile(Enum):
    RELEASE = "release"
    DEBUG = "debug"


def detect_build_profile(environ=None) -> BuildProfile:
    """Packaged executables run as release, source checkouts as debug.

    ``CRA_CLIENT_PROFILE`` (``release``/``debug``) overrides the detection.
    """
    environ = os.environ if environ is None else environ
    override = environ.get("CRA_CLIENT_PROFILE", "").strip().lower()
    if override in ("release", "debug"):
        return BuildProfile(override)
    return BuildProfile.RELEASE if IS_FROZEN else BuildProfile.DEBUG


def executable_dir() -> Path:
    """Directory holding the running executable (or launcher script)."""
    if IS_FROZEN:
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0] or ".").resolve().parent


def get_platform_info() -> dict:
    """Get detailed platform information."""
    return {
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
        "python_version": platform.python_version(),
        "is_windows": IS_WINDOWS,
        "is_linux": IS_LINUX,
        "is_macos": IS_MACOS,
        "is_frozen": IS_FROZEN,
    }
