#!/usr/bin/env python3
"""CLI entrypoint -- read a broadcast video, stabilize it, write the result.

Usage
-----
    # Stabilize with the default configuration:
    python scripts/run_video.py input.mp4 output.mp4

    # Drop frames for which no camera motion could be estimated:
    python scripts/run_video.py input.mp4 output.mp4 --on_failure drop

    # Debug run: HUD, singularity-mask preview, first 100 frames:
    python scripts/run_video.py input.mp4 output.mp4 \\
        --hud --singularity_debug --max_frames 100

    # Tint the stabilization mask layers (field, public, overlay):
    python scripts/run_video.py input.mp4 output.mp4 --mask_debug

    # Visual alignment check (50/50 blend with the reference frame):
    python scripts/run_video.py input.mp4 output.mp4 --blend_previous

Config defaults are loaded from ``configs/default.yaml``; any CLI flag
overrides the corresponding config value.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any

import numpy as np

# ---------------------------------------------------------------------------
# Make the ``src/`` tree importable when running the script directly.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT / "src"))

from broadcast_stabilizer.config import StabilizationConfig, load_config  # noqa: E402
from broadcast_stabilizer.io.video import (  # noqa: E402
    VideoReader,
    VideoWriter,
    reencode_to_h264,
)
from broadcast_stabilizer.pipeline.masks.composition import (  # noqa: E402
    LayeredMasker,
    build_singularity_mask,
    stabilization_layers,
)
from broadcast_stabilizer.pipeline.stabilization.stabilizer import (  # noqa: E402
    FrameStabilizer,
    StabilizationResult,
)
from broadcast_stabilizer.pipeline.temporal.motion_tracker import MotionTracker  # noqa: E402
from broadcast_stabilizer.utils.draw import (  # noqa: E402
    STATUS_FAIL_COLOR,
    STATUS_OK_COLOR,
    blend_frames,
    overlay_mask_preview,
    overlay_text_with_outline,
    render_mask_layers,
)

logger = logging.getLogger("run_video")

DEFAULTS_CONFIG_PATH = _PROJECT_ROOT / "configs" / "default.yaml"

ON_FAILURE_POLICIES = ("identity", "drop")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_resize(value: str | None) -> tuple[int, int] | None:
    """Parse a ``'WIDTHxHEIGHT'`` string into an ``(int, int)`` tuple.

    Returns ``None`` when *value* is ``None``.
    """
    if value is None:
        return None
    parts = value.lower().split("x")
    if len(parts) != 2:
        raise ValueError(
            f"Invalid resize format '{value}'. Expected 'WIDTHxHEIGHT', e.g. '1280x720'."
        )
    return int(parts[0]), int(parts[1])


def _compute_font_metrics(frame_width: int) -> tuple[float, int, int]:
    """Return ``(font_scale, thickness, line_height)`` scaled to frame width."""
    font_scale = max(0.5, frame_width / 1280.0)
    thickness = max(1, int(font_scale * 2))
    line_height = int(30 + font_scale * 10)
    return font_scale, thickness, line_height


def overlay_status(
    frame: np.ndarray,
    frame_index: int,
    result: StabilizationResult | None,
) -> None:
    """Draw frame index and stabilization status (two HUD lines).  Mutates *frame*."""
    _frame_height, frame_width = frame.shape[:2]
    font_scale, thickness, line_height = _compute_font_metrics(frame_width)
    overlay_text_with_outline(
        frame, f"Frame {frame_index}", (10, line_height), font_scale, (255, 255, 255), thickness
    )

    if result is None:
        text = "REFERENCE"
        color = STATUS_OK_COLOR
    elif result["transform"] is None:
        text = f"NO TRANSFORM tracked={result['debug']['tracked']}"
        color = STATUS_FAIL_COLOR
    else:
        transform = result["transform"]
        rotation = float(np.degrees(np.arctan2(transform[1, 0], transform[0, 0])))
        text = (
            f"STAB OK dx={transform[0, 2]:+.1f} dy={transform[1, 2]:+.1f} "
            f"rot={rotation:+.2f} inliers={result['debug']['inliers']}"
        )
        color = STATUS_OK_COLOR

    position = (10, line_height + int(font_scale * 30))
    overlay_text_with_outline(frame, text, position, font_scale, color, thickness)


def build_argument_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Stabilize shaky sports-broadcast footage.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("input", help="Path to input video file (e.g. match.mp4)")
    parser.add_argument("output", help="Path to output video file (e.g. stabilized.mp4)")

    # --- Frame selection --------------------------------------------------
    parser.add_argument(
        "--start_frame", type=int, default=None, help="First frame index to process."
    )
    parser.add_argument(
        "--max_frames", type=int, default=None, help="Maximum number of frames to process."
    )
    parser.add_argument("--stride", type=int, default=None, help="Process every N-th frame.")
    parser.add_argument(
        "--resize", type=str, default=None, help="Resize frames to WIDTHxHEIGHT, e.g. 1280x720."
    )

    # --- Stabilization ----------------------------------------------------
    parser.add_argument(
        "--on_failure",
        type=str,
        default=None,
        choices=ON_FAILURE_POLICIES,
        help=(
            "What to write when no transform is found: 'identity' = the current "
            "frame unwarped; 'drop' = nothing (default from config: identity)."
        ),
    )

    # --- Debug output -----------------------------------------------------
    parser.add_argument(
        "--hud", action="store_true", default=False, help="Draw frame index and status text."
    )
    parser.add_argument(
        "--singularity_debug",
        action="store_true",
        default=False,
        help="Show a singularity-mask preview in the bottom-right corner.",
    )
    parser.add_argument(
        "--mask_debug",
        action="store_true",
        default=False,
        help="Tint the field, public and overlay layers of the stabilization mask.",
    )
    parser.add_argument(
        "--blend_previous",
        action="store_true",
        default=False,
        help="Write a 50/50 blend of the reference frame and the stabilized frame.",
    )

    # --- Config / logging -------------------------------------------------
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--log_level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def _pick(cli_value: Any, config: dict[str, Any], key: str, default: Any) -> Any:
    return cli_value if cli_value is not None else config.get(key, default)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = build_argument_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # --- Merge config defaults with CLI overrides -------------------------
    config_path = Path(args.config) if args.config else DEFAULTS_CONFIG_PATH
    config = load_config(config_path)
    logger.info("Loaded config from %s", config_path)

    start_frame: int = _pick(args.start_frame, config, "start_frame", 0)
    max_frames: int | None = _pick(args.max_frames, config, "max_frames", None)
    stride: int = _pick(args.stride, config, "stride", 1)
    resize = parse_resize(_pick(args.resize, config, "resize", None))
    on_failure: str = _pick(args.on_failure, config, "on_failure", "identity")
    if on_failure not in ON_FAILURE_POLICIES:
        parser.error(f"on_failure must be one of {ON_FAILURE_POLICIES}, got {on_failure!r}")

    stabilization_config = StabilizationConfig.from_dict(config.get("stabilization"))
    stabilizer = FrameStabilizer(stabilization_config)
    layer_masker = LayeredMasker(stabilization_layers(stabilization_config))
    motion_tracker = MotionTracker()

    logger.info(
        "Settings -- start_frame=%d  max_frames=%s  stride=%d  resize=%s  on_failure=%s  "
        "border=%dx%d  hud=%s  singularity_debug=%s  mask_debug=%s  blend_previous=%s",
        start_frame,
        max_frames,
        stride,
        resize,
        on_failure,
        stabilization_config.border_width,
        stabilization_config.border_height,
        args.hud,
        args.singularity_debug,
        args.mask_debug,
        args.blend_previous,
    )

    # --- Process video ----------------------------------------------------
    wall_clock_start = time.perf_counter()
    dropped_count = 0
    previous_frame: np.ndarray | None = None

    with VideoReader(
        args.input,
        start_frame=start_frame,
        max_frames=max_frames,
        stride=stride,
        resize=resize,
    ) as reader:
        output_width, output_height = reader.frame_size
        singularity_debug = args.singularity_debug
        border = stabilization_config.singularity_border
        if singularity_debug and min(output_width, output_height) <= 2 * border:
            logger.warning(
                "Frames of %dx%d leave no interior inside the %d px singularity border; "
                "singularity preview disabled",
                output_width,
                output_height,
                border,
            )
            singularity_debug = False

        with VideoWriter(
            args.output,
            fps=reader.fps,
            width=output_width,
            height=output_height,
        ) as writer:
            for frame_index, frame in reader:
                # --- Reference frame: written as-is ----------------------
                if previous_frame is None:
                    previous_frame = frame
                    output_frame = frame.copy()
                    if args.hud:
                        overlay_status(output_frame, frame_index, None)
                    writer.write(output_frame)
                    continue

                result = stabilizer.stabilize(previous_frame, frame)
                motion_tracker.update(result["transform"])
                logger.debug(
                    "Frame %d: tracked=%d  inliers=%d  %.1f ms",
                    frame_index,
                    result["debug"]["tracked"],
                    result["debug"]["inliers"],
                    result["debug"]["elapsed_ms"],
                )

                # --- Explicit failure policy ---------------------------
                stabilized = result["frame"]
                if stabilized is None:
                    if on_failure == "drop":
                        dropped_count += 1
                        logger.warning("Frame %d: no transform found, dropped", frame_index)
                        previous_frame = frame
                        continue
                    logger.warning("Frame %d: no transform found, written unwarped", frame_index)
                    stabilized = frame.copy()

                # --- Singularity mask on the stabilized frame ----------
                singularity_mask = None
                if singularity_debug:
                    singularity_mask = build_singularity_mask(stabilized, stabilization_config)

                output_frame = (
                    blend_frames(previous_frame, stabilized) if args.blend_previous else stabilized
                )
                if args.mask_debug:
                    layers = layer_masker.mask(stabilized)["debug"]["layers"]
                    output_frame = render_mask_layers(output_frame, layers, layer_masker.tints())
                if args.hud:
                    overlay_status(output_frame, frame_index, result)
                if singularity_mask is not None:
                    overlay_mask_preview(output_frame, singularity_mask, label="SINGULARITY MASK")

                writer.write(output_frame)
                previous_frame = frame

                if writer.frames_written % 100 == 0:
                    elapsed = time.perf_counter() - wall_clock_start
                    logger.info(
                        "Progress: %d frames written  (%.1f s elapsed, ~%.1f fps)  "
                        "failures=%d  dropped=%d",
                        writer.frames_written,
                        elapsed,
                        writer.frames_written / max(elapsed, 1e-6),
                        motion_tracker.num_failures,
                        dropped_count,
                    )

            total_frames = writer.frames_written

    wall_clock_elapsed = time.perf_counter() - wall_clock_start
    logger.info(
        "Done -- %d frames in %.1f s (%.1f fps). Output: %s",
        total_frames,
        wall_clock_elapsed,
        total_frames / max(wall_clock_elapsed, 1e-6),
        args.output,
    )

    # --- Re-encode to H.264 for broad playback compatibility --------------
    reencode_to_h264(args.output)

    summary = motion_tracker.get_summary()
    if summary is not None:
        logger.info("Camera motion -- %s", summary.to_log_string())
    else:
        logger.info(
            "Camera motion -- no transform estimated (%d failures)", motion_tracker.num_failures
        )


if __name__ == "__main__":
    main()
