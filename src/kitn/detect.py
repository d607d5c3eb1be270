"""
detect:
    Package manager detection and command lines
"""

from enum import Enum
from pathlib import Path
from typing import Optional


class PackageManager(str, Enum):
    BUN = "bun"
    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"


# First match wins when several lockfiles exist
LOCKFILES: list[tuple[str, PackageManager]] = [
    ("bun.lock", PackageManager.BUN),
    ("bun.lockb", PackageManager.BUN),
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("package-lock.json", PackageManager.NPM),
]

_ADD = {
    PackageManager.BUN: ["bun", "add"],
    PackageManager.PNPM: ["pnpm", "add"],
    PackageManager.YARN: ["yarn", "add"],
    PackageManager.NPM: ["npm", "install"],
}

_DEV_FLAG = {
    PackageManager.BUN: "-d",
    PackageManager.PNPM: "-D",
    PackageManager.YARN: "-D",
    PackageManager.NPM: "-D",
}

_RUN = {
    PackageManager.BUN: ["bunx"],
    PackageManager.PNPM: ["pnpm", "dlx"],
    PackageManager.YARN: ["yarn", "dlx"],
    PackageManager.NPM: ["npx"],
}


def detect_package_manager(directory: Path) -> Optional[PackageManager]:
    """Return the package manager whose lockfile is found first, if any."""
    for lockfile, manager in LOCKFILES:
        if (Path(directory) / lockfile).exists():
            return manager
    return None


def get_install_command(
    manager: PackageManager, packages: list[str], dev: bool = False
) -> list[str]:
    """Command line that adds packages as project dependencies."""
    manager = PackageManager(manager)
    command = list(_ADD[manager])
    if dev:
        command.append(_DEV_FLAG[manager])
    return command + list(packages)


def get_run_command(manager: PackageManager) -> list[str]:
    """Command prefix that runs a published binary without installing it."""
    return list(_RUN[PackageManager(manager)])
