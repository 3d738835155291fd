"""Tests for cryptdir.encfs."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cryptdir.encfs import EncFS
from cryptdir.errors import MountFailed, ToolNotFound

CRYPT = Path("/data/.foo.crypt")
CLEAR = Path("/data/foo")


class TestVolume:
    def test_has_volume(self, tmp_path):
        fs = EncFS()
        assert not fs.has_volume(tmp_path)
        (tmp_path / ".encfs6.xml").write_text("<cfg/>")
        assert fs.has_volume(tmp_path)

    def test_has_volume_on_missing_dir(self, tmp_path):
        assert not EncFS().has_volume(tmp_path / "nope")

    def test_is_mounted_uses_mount_table(self):
        with patch("cryptdir.encfs.mounts.is_mounted", return_value=True) as m:
            assert EncFS().is_mounted(CLEAR)
        m.assert_called_once_with(CLEAR, "fuse.encfs")


class TestInitialize:
    def test_runs_standard_mode_attached_to_terminal(self):
        result = MagicMock(returncode=0)
        with patch("cryptdir.encfs.subprocess.run", return_value=result) as run:
            EncFS().initialize(CRYPT, CLEAR)
        run.assert_called_once_with(["encfs", "--standard", str(CRYPT), str(CLEAR)])

    def test_failure_raises(self):
        result = MagicMock(returncode=1)
        with patch("cryptdir.encfs.subprocess.run", return_value=result):
            with pytest.raises(MountFailed, match="could not create"):
                EncFS().initialize(CRYPT, CLEAR)

    def test_missing_binary_raises(self):
        with patch("cryptdir.encfs.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(ToolNotFound, match="encfs not found"):
                EncFS().initialize(CRYPT, CLEAR)


class TestMount:
    def test_interactive(self):
        result = MagicMock(returncode=0)
        with patch("cryptdir.encfs.subprocess.run", return_value=result) as run:
            EncFS().mount(CRYPT, CLEAR, 30)
        run.assert_called_once_with(["encfs", "--idle=30", str(CRYPT), str(CLEAR)])

    def test_password_goes_to_stdin_not_argv(self):
        result = MagicMock(returncode=0, stderr="")
        with patch("cryptdir.encfs.subprocess.run", return_value=result) as run:
            EncFS().mount(CRYPT, CLEAR, 30, password="hunter2")
        cmd = run.call_args.args[0]
        assert "--stdinpass" in cmd
        assert "hunter2" not in cmd
        assert run.call_args.kwargs["input"] == "hunter2\n"

    def test_zero_idle_omits_flag(self):
        result = MagicMock(returncode=0)
        with patch("cryptdir.encfs.subprocess.run", return_value=result) as run:
            EncFS().mount(CRYPT, CLEAR, 0)
        assert not any(a.startswith("--idle") for a in run.call_args.args[0])

    def test_failure_includes_stderr(self):
        result = MagicMock(returncode=1, stderr="Error decoding volume key, password incorrect\n")
        with patch("cryptdir.encfs.subprocess.run", return_value=result):
            with pytest.raises(MountFailed, match="password incorrect"):
                EncFS().mount(CRYPT, CLEAR, 30, password="wrong")


class TestUnmount:
    def test_success(self):
        result = MagicMock(returncode=0, stderr="")
        with patch("cryptdir.encfs.subprocess.run", return_value=result) as run:
            assert EncFS(unmount_command="fusermount -u").unmount(CLEAR) is True
        assert run.call_args.args[0] == ["fusermount", "-u", str(CLEAR)]

    def test_busy_returns_false(self):
        result = MagicMock(returncode=1, stderr="Device or resource busy")
        with patch("cryptdir.encfs.subprocess.run", return_value=result):
            assert EncFS(unmount_command="fusermount -u").unmount(CLEAR) is False

    def test_custom_unmount_command(self):
        fs = EncFS(unmount_command="umount -f")
        assert fs.unmount_cmd == ["umount", "-f"]
        assert fs.unmount_hint(CLEAR) == f"umount -f {CLEAR}"

    def test_default_unmount_command_per_platform(self, monkeypatch):
        monkeypatch.setattr("cryptdir.encfs.sys.platform", "linux")
        assert EncFS().unmount_cmd == ["fusermount", "-u"]
        monkeypatch.setattr("cryptdir.encfs.sys.platform", "darwin")
        assert EncFS().unmount_cmd == ["umount"]
