"""Tests for the host tuning tweaks against temporary system files."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from clawstrap import tuning


class TestMarkers:

    def test_missing_file_not_done(self, tmp_path: Path) -> None:
        assert not tuning.inotify_done(tmp_path / "sysctl.conf")
        assert not tuning.swappiness_done(tmp_path / "sysctl.conf")
        assert not tuning.nofile_done(tmp_path / "limits.conf")

    def test_markers_found(self, tmp_path: Path) -> None:
        sysctl = tmp_path / "sysctl.conf"
        sysctl.write_text("fs.inotify.max_user_watches=524288\nvm.swappiness=10\n")
        limits = tmp_path / "limits.conf"
        limits.write_text("pi soft nofile 65536\n")
        assert tuning.inotify_done(sysctl)
        assert tuning.swappiness_done(sysctl)
        assert tuning.nofile_done(limits)

    @patch("clawstrap.tuning.commands.output_of", return_value="")
    def test_swapfile_done(self, _out: MagicMock, tmp_path: Path) -> None:
        swap = tmp_path / "swapfile"
        assert not tuning.swapfile_done(swap)
        swap.write_bytes(b"")
        assert tuning.swapfile_done(swap)


class TestTweaks:

    @patch("clawstrap.tuning.commands.run")
    def test_inotify_appends_through_sudo_tee(self, mock_run: MagicMock, tmp_path: Path) -> None:
        sysctl = tmp_path / "sysctl.conf"
        tuning.raise_inotify_watches(sysctl)
        first = mock_run.call_args_list[0]
        assert first.args[0][-3:] == ["tee", "-a", str(sysctl)]
        assert first.kwargs["input_text"] == tuning.INOTIFY_LINE + "\n"

    @patch("clawstrap.tuning.getpass.getuser", return_value="pi")
    @patch("clawstrap.tuning.commands.run")
    def test_nofile_lines(self, mock_run: MagicMock, _user: MagicMock, tmp_path: Path) -> None:
        tuning.raise_nofile_limits(tmp_path / "limits.conf")
        text = mock_run.call_args.kwargs["input_text"]
        assert "pi soft nofile 65536" in text
        assert "pi hard nofile 65536" in text

    @patch("clawstrap.tuning.commands.run")
    def test_swapfile_skips_existing_fstab_entry(self, mock_run: MagicMock, tmp_path: Path) -> None:
        swap = tmp_path / "swapfile"
        fstab = tmp_path / "fstab"
        fstab.write_text(f"{swap} none swap sw 0 0\n")
        tuning.create_swapfile(swap, fstab)
        assert mock_run.call_count == 4
