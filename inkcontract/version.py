"""Version string of the command-line tool."""

from __future__ import annotations

import subprocess
import warnings
from platform import machine, system

_UNKNOWN = "unknown"

_ARCH_ALIASES = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64", "i386": "i686"}
_OS_TRIPLES = {
    "linux": "unknown-linux-gnu",
    "darwin": "apple-darwin",
    "windows": "pc-windows-msvc",
    "freebsd": "unknown-freebsd",
}


def git_commit() -> str:
    """Short hash of the current git HEAD, or ``"unknown"`` if unavailable."""
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            check=False,
        )
    except OSError as err:
        warnings.warn(f"Failed to execute git command: {err}", stacklevel=2)
        return _UNKNOWN
    if completed.returncode != 0:
        warnings.warn(
            f"Git command failed with status: {completed.returncode}", stacklevel=2
        )
        return _UNKNOWN
    return completed.stdout.decode("utf-8", errors="replace").strip()


def _current_platform() -> str:
    arch = machine().lower()
    arch = _ARCH_ALIASES.get(arch, arch) or _UNKNOWN
    os_name = system().lower()
    triple = _OS_TRIPLES.get(os_name, f"unknown-{os_name or _UNKNOWN}")
    return f"{arch}-{triple}"


def impl_version(
    package_version: str, commit: str | None = None, platform: str | None = None
) -> str:
    """Compose ``<version>[-<commit>]-<platform>``.

    The commit defaults to the current git HEAD and the platform to a
    target triple describing this machine.
    """
    if commit is None:
        commit = git_commit()
    if platform is None:
        platform = _current_platform()
    commit_dash = "-" if commit else ""
    return f"{package_version}{commit_dash}{commit}-{platform}"