"""Tests for the command line renderer.

Tests cover:
- Argument defaults and short flags
- Headless end-to-end render writing one file per frame
- Exit codes for invalid arguments
"""

import os

import pytest
from PIL import Image as PILImage


def small_args(output, *extra):
    return [
        str(output),
        "-w", "16",
        "-H", "12",
        "-s", "1",
        "-f", "2",
        "--tilesize", "8",
        "--bounces", "2",
        "-t", "2",
        "--seed", "3",
        "--no-preview",
        "--no-progress",
        *extra,
    ]


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test the documented defaults."""
        from sidequest.cli import parse_args

        args = parse_args(["out_%n.png"])
        assert args.output == "out_%n.png"
        assert args.threads == (os.cpu_count() or 1)
        assert (args.width, args.height) == (512, 512)
        assert args.samples == 1000
        assert args.frames == 30
        assert args.tilesize == 64
        assert args.bounces == 12
        assert args.seed is None
        assert args.poll_ms == 100
        assert not args.no_preview
        assert args.verbose == 0

    def test_short_flags(self):
        """Test the short option spellings."""
        from sidequest.cli import parse_args

        args = parse_args(["o.png", "-t", "3", "-w", "64", "-H", "32", "-s", "5", "-f", "2", "-vv"])
        assert (args.threads, args.width, args.height) == (3, 64, 32)
        assert (args.samples, args.frames, args.verbose) == (5, 2, 2)

    def test_missing_output(self):
        """Test that OUTPUT is required."""
        from sidequest.cli import parse_args

        with pytest.raises(SystemExit) as excinfo:
            parse_args([])
        assert excinfo.value.code == 2

    def test_poll_ms_must_be_positive(self):
        """Test that a zero poll interval is an argument error."""
        from sidequest.cli import parse_args

        with pytest.raises(SystemExit) as excinfo:
            parse_args(["o.png", "--poll-ms", "0"])
        assert excinfo.value.code == 2


class TestMain:
    """Tests for the main entry point."""

    def test_headless_render(self, tmp_path, capsys):
        """Test that every frame is written to its numbered file."""
        from sidequest.cli import main

        assert main(small_args(tmp_path / "frame_%n.png")) == 0

        for num in (0, 1):
            path = tmp_path / f"frame_{num}.png"
            assert path.exists()
            with PILImage.open(path) as img:
                assert img.size == (16, 12)
        out = capsys.readouterr().out
        assert "Saved frame 0" in out
        assert "Done: 8 tiles of 2 frames" in out

    def test_invalid_size_exit_code(self, tmp_path, capsys):
        """Test that invalid render parameters exit with status 2."""
        from sidequest.cli import main

        assert main(small_args(tmp_path / "f_%n.png", "-w", "0")) == 2
        assert "Error" in capsys.readouterr().err
        assert not list(tmp_path.iterdir())

    def test_invalid_frames_exit_code(self, tmp_path):
        """Test that zero frames is rejected."""
        from sidequest.cli import main

        assert main(small_args(tmp_path / "f_%n.png", "-f", "0")) == 2

    def test_render_error_exit_code(self, tmp_path, monkeypatch, capsys):
        """Test that a failure during rendering exits with status 1."""
        from sidequest import cli
        from sidequest.errors import TileSinkError

        def failing_save(frame, template, frame_num):
            raise TileSinkError(frame_num, 0, 0, "disk full")

        monkeypatch.setattr(cli, "save_frame", failing_save)
        assert cli.main(small_args(tmp_path / "f_%n.png")) == 1
        assert "disk full" in capsys.readouterr().err
