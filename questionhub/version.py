"""Version string made of the package version, git commit and platform."""

from __future__ import annotations

import logging
import platform
import subprocess
import sys
from importlib import metadata
from pathlib import Path

logger = logging.getLogger(__name__)

_ARCH_ALIASES = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64", "i686": "x86", "i386": "x86"}
_OS_NAMES = {"darwin": "macos", "win32": "windows", "cygwin": "windows"}


def git_commit() -> str:
    """Return the short hash of the checked-out commit, or "unknown"."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            cwd=Path(__file__).resolve().parent,
        )
    except OSError as err:
        logger.warning("Failed to execute git command: %s", err)
        return "unknown"
    if result.returncode != 0:
        logger.warning("Git command failed with status: %s", result.returncode)
        return "unknown"
    return result.stdout.decode("utf-8", errors="replace").strip()


def _detect_env(os_name: str) -> str:
    if os_name == "linux":
        libc, _ = platform.libc_ver()
        return "gnu" if libc == "glibc" else ""
    if os_name == "windows":
        return "msvc"
    return ""


def get_platform(
    arch: str | None = None, os_name: str | None = None, env: str | None = None
) -> str:
    """Return ``arch-os`` or ``arch-os-env``, detecting any part not given."""
    if arch is None:
        machine = platform.machine().lower()
        arch = _ARCH_ALIASES.get(machine, machine)
    if os_name is None:
        os_name = _OS_NAMES.get(sys.platform, sys.platform.rstrip("0123456789"))
    if env is None:
        env = _detect_env(os_name)
    env_dash = "-" if env else ""
    return f"{arch}-{os_name}{env_dash}{env}"


def get_version(commit: str, package_version: str, platform: str) -> str:
    """Join the package version, commit and platform into one version string."""
    commit_dash = "-" if commit else ""
    return f"{package_version}{commit_dash}{commit}-{platform}"


def _package_version() -> str:
    try:
        return metadata.version("questionhub")
    except metadata.PackageNotFoundError:
        return ""


def app_version() -> str:
    """Return the version string of the running application."""
    return get_version(git_commit(), _package_version(), get_platform())