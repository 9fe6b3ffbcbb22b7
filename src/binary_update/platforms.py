"""
Platform detection and artifact naming
"""

import platform
from typing import Optional, Tuple

OS_ALIASES = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
    "freebsd": "freebsd",
}

ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "arm": "arm",
}


def detect_platform(system: Optional[str] = None,
                    machine: Optional[str] = None) -> Tuple[str, str]:
    """Return the (os, arch) pair used in artifact names"""
    system = (system if system is not None else platform.system()).lower()
    machine = (machine if machine is not None else platform.machine()).lower()
    return OS_ALIASES.get(system, system), ARCH_ALIASES.get(machine, machine)


def archive_extension(os_name: str) -> str:
    return "zip" if os_name == "windows" else "tar.gz"


def artifact_name(dist_name: str, version: str, os_name: str, arch: str) -> str:
    """e.g. go-ipfs_v0.4.1_linux-amd64.tar.gz"""
    return f"{dist_name}_{version}_{os_name}-{arch}.{archive_extension(os_name)}"


def executable_name(binary_name: str, os_name: str) -> str:
    return binary_name + ".exe" if os_name == "windows" else binary_name
