"""Smoke tests -- verify that imports work and the CLI is wired up correctly."""

import subprocess
import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_core_imports():
    """VideoReader, VideoWriter and the stabilizer can be imported without error."""
    from broadcast_stabilizer.io.video import VideoReader, VideoWriter
    from broadcast_stabilizer.pipeline.stabilization import FrameStabilizer, stabilize

    assert VideoReader is not None
    assert VideoWriter is not None
    assert FrameStabilizer is not None
    assert stabilize is not None


def test_package_init_imports():
    """Top-level and sub-package __init__ modules import cleanly."""
    import broadcast_stabilizer
    import broadcast_stabilizer.io
    import broadcast_stabilizer.pipeline
    import broadcast_stabilizer.pipeline.masks
    import broadcast_stabilizer.pipeline.stabilization
    import broadcast_stabilizer.pipeline.temporal
    import broadcast_stabilizer.utils

    assert broadcast_stabilizer is not None


def test_cli_help_exits_zero():
    """``scripts/run_video.py --help`` exits with code 0 and shows usage."""
    script_path = str(_PROJECT_ROOT / "scripts" / "run_video.py")
    result = subprocess.run(
        [sys.executable, script_path, "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, f"CLI --help failed:\n{result.stderr}"
    assert "input" in result.stdout.lower()
    assert "on_failure" in result.stdout.lower()
