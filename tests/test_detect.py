"""Tests for package manager detection."""

import pytest

from kitn.detect import (
    PackageManager,
    detect_package_manager,
    get_install_command,
    get_run_command,
)


class TestDetectPackageManager:
    """Tests for detect_package_manager()."""

    @pytest.mark.parametrize(
        "lockfile, expected",
        [
            ("bun.lock", PackageManager.BUN),
            ("bun.lockb", PackageManager.BUN),
            ("pnpm-lock.yaml", PackageManager.PNPM),
            ("yarn.lock", PackageManager.YARN),
            ("package-lock.json", PackageManager.NPM),
        ],
    )
    def test_single_lockfile(self, tmp_path, lockfile, expected):
        (tmp_path / lockfile).write_text("")
        assert detect_package_manager(tmp_path) == expected

    def test_no_lockfile(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        assert detect_package_manager(tmp_path) is None

    def test_bun_wins_over_npm(self, tmp_path):
        """Probe order decides when stale lockfiles coexist."""
        (tmp_path / "package-lock.json").write_text("")
        (tmp_path / "bun.lock").write_text("")
        assert detect_package_manager(tmp_path) == PackageManager.BUN

    def test_pnpm_wins_over_yarn(self, tmp_path):
        (tmp_path / "yarn.lock").write_text("")
        (tmp_path / "pnpm-lock.yaml").write_text("")
        assert detect_package_manager(tmp_path) == PackageManager.PNPM


class TestCommands:
    """Tests for install and run command lines."""

    def test_install_commands(self):
        assert get_install_command(PackageManager.BUN, ["zod"]) == ["bun", "add", "zod"]
        assert get_install_command(PackageManager.PNPM, ["zod"]) == ["pnpm", "add", "zod"]
        assert get_install_command(PackageManager.YARN, ["zod"]) == ["yarn", "add", "zod"]
        assert get_install_command(PackageManager.NPM, ["zod", "ai"]) == ["npm", "install", "zod", "ai"]

    def test_dev_install_commands(self):
        assert get_install_command(PackageManager.BUN, ["vitest"], dev=True) == ["bun", "add", "-d", "vitest"]
        assert get_install_command(PackageManager.NPM, ["vitest"], dev=True) == ["npm", "install", "-D", "vitest"]

    def test_accepts_plain_string(self):
        assert get_install_command("pnpm", ["zod"]) == ["pnpm", "add", "zod"]

    def test_run_commands(self):
        assert get_run_command(PackageManager.BUN) == ["bunx"]
        assert get_run_command(PackageManager.PNPM) == ["pnpm", "dlx"]
        assert get_run_command(PackageManager.YARN) == ["yarn", "dlx"]
        assert get_run_command(PackageManager.NPM) == ["npx"]
