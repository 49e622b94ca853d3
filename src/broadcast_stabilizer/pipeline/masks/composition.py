"""Layered relevance-mask composition.

Both relevance masks (for camera stabilization and for singularity
detection) are built the same way: a few source masks, each refined by
erosion/dilation and optionally inverted, are painted onto an all-zero
canvas in a fixed order.  Each layer declares *how* it paints:

``INCLUDE_WHERE_LOW``
    set 255 wherever the layer is ``< 10`` (not relevant in the layer).
``EXCLUDE_WHERE_HIGH``
    set 0 wherever the layer is ``> 250``.
``INCLUDE_WHERE_HIGH``
    set 255 wherever the layer is ``> 250``.

Later layers override earlier ones at the same pixel.  The open band
``[10, 250]`` is left untouched by every rule.

Design notes
------------
- :class:`LayeredMasker` returns a :class:`MaskCompositionResult`
  TypedDict (``mask`` + ``debug``), mirroring the other per-frame
  estimators in this package.  ``debug["layers"]`` holds every refined
  layer so callers can render :func:`render_mask_layers` previews.
- Stabilization layers (result marks pixels to EXCLUDE from motion
  estimation): ``field`` paints everything that is not grass, ``public``
  then clears the crowd/stands, ``overlay`` finally forces the
  scoreboard in.  Players on the pitch remain excluded; the stands,
  which are static, stay usable for estimation.
- Singularity layers are a plain union of ``public``, ``overlay`` and a
  ``border`` band: players stay usable, everything else is excluded.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypedDict

import numpy as np

from broadcast_stabilizer.config import StabilizationConfig
from broadcast_stabilizer.pipeline.masks.background import detect_background
from broadcast_stabilizer.pipeline.masks.morphology import border_mask, dilate, erode
from broadcast_stabilizer.pipeline.masks.overlay import detect_overlay_panel

# Values strictly above / below these are "relevant" / "not relevant".
RELEVANT_THRESHOLD: int = 250
IRRELEVANT_THRESHOLD: int = 10

MaskSource = Callable[[np.ndarray], np.ndarray]


class CompositeRule(Enum):
    """How a layer is painted onto the composite."""

    INCLUDE_WHERE_LOW = "include_where_low"
    EXCLUDE_WHERE_HIGH = "exclude_where_high"
    INCLUDE_WHERE_HIGH = "include_where_high"


@dataclass(frozen=True)
class MorphOp:
    """A single in-place erosion or dilation step."""

    kind: str
    radius: int

    def __post_init__(self) -> None:
        if self.kind not in ("erode", "dilate"):
            raise ValueError(f"kind must be 'erode' or 'dilate', got {self.kind!r}")

    def apply(self, mask: np.ndarray) -> None:
        if self.kind == "erode":
            erode(mask, self.radius)
        else:
            dilate(mask, self.radius)


@dataclass(frozen=True)
class LayerTint:
    """Per-channel BGR tint used by debug previews: ``out = pixel * keep + add``."""

    keep: tuple[float, float, float]
    add: tuple[float, float, float]


@dataclass(frozen=True)
class MaskLayer:
    """One source mask, its refinement, and its compositing rule."""

    name: str
    source: MaskSource
    rule: CompositeRule
    operations: tuple[MorphOp, ...] = ()
    invert: bool = False
    tint: LayerTint | None = None

    def render(self, frame: np.ndarray) -> np.ndarray:
        """Produce the refined layer mask for *frame*."""
        mask = self.source(frame)
        for operation in self.operations:
            operation.apply(mask)
        if self.invert:
            mask = 255 - mask
        return mask


class MaskCompositionResult(TypedDict):
    """Typed dictionary returned by :meth:`LayeredMasker.mask`.

    Attributes
    ----------
    mask : np.ndarray
        ``(H, W)`` uint8, ``255`` = exclude, ``0`` = usable.
    debug : dict[str, Any]
        ``layers``: ``{layer_name: refined layer mask}`` in evaluation order.
    """

    mask: np.ndarray
    debug: dict[str, Any]


def apply_rule(composite: np.ndarray, layer_mask: np.ndarray, rule: CompositeRule) -> None:
    """Paint *layer_mask* onto *composite* in-place according to *rule*."""
    if rule is CompositeRule.INCLUDE_WHERE_LOW:
        composite[layer_mask < IRRELEVANT_THRESHOLD] = 255
    elif rule is CompositeRule.EXCLUDE_WHERE_HIGH:
        composite[layer_mask > RELEVANT_THRESHOLD] = 0
    else:
        composite[layer_mask > RELEVANT_THRESHOLD] = 255


class LayeredMasker:
    """Evaluate an ordered list of :class:`MaskLayer` into one mask.

    Parameters
    ----------
    layers : Sequence[MaskLayer]
        Layers in painting order; later layers win.
    """

    def __init__(self, layers: Sequence[MaskLayer]) -> None:
        if not layers:
            raise ValueError("LayeredMasker needs at least one layer")
        names = [layer.name for layer in layers]
        if len(set(names)) != len(names):
            raise ValueError(f"Layer names must be unique, got {names}")
        self._layers = tuple(layers)

    @property
    def layers(self) -> tuple[MaskLayer, ...]:
        return self._layers

    def mask(self, frame: np.ndarray) -> MaskCompositionResult:
        """Compose the relevance mask for a single ``(H, W, 3)`` BGR *frame*."""
        frame_height, frame_width = frame.shape[:2]
        composite = np.zeros((frame_height, frame_width), dtype=np.uint8)
        layer_masks: dict[str, np.ndarray] = {}

        for layer in self._layers:
            layer_mask = layer.render(frame)
            apply_rule(composite, layer_mask, layer.rule)
            layer_masks[layer.name] = layer_mask

        return MaskCompositionResult(mask=composite, debug={"layers": layer_masks})

    def tints(self) -> dict[str, LayerTint]:
        """Return ``{layer_name: tint}`` for layers that define one."""
        return {layer.name: layer.tint for layer in self._layers if layer.tint is not None}


# ---------------------------------------------------------------------------
# Debug tints (BGR)
# ---------------------------------------------------------------------------

FIELD_TINT = LayerTint(keep=(1.0, 0.3, 1.0), add=(0.0, 178.5, 0.0))
PUBLIC_TINT = LayerTint(keep=(0.2, 0.2, 0.2), add=(204.0, 204.0, 204.0))
OVERLAY_TINT = LayerTint(keep=(0.6, 0.6, 0.2), add=(0.0, 0.0, 200.0))
BORDER_TINT = LayerTint(keep=(0.5, 1.0, 1.0), add=(127.5, 0.0, 0.0))


# ---------------------------------------------------------------------------
# Layer factories
# ---------------------------------------------------------------------------


def _field_layer(config: StabilizationConfig) -> MaskLayer:
    # Dilation first closes field lines; the stronger erosion then pulls
    # the grass boundary away from players standing on its edge.
    return MaskLayer(
        name="field",
        source=lambda frame: detect_background(frame, config.grass_hsv),
        rule=CompositeRule.INCLUDE_WHERE_LOW,
        operations=(
            MorphOp("dilate", config.field_dilation),
            MorphOp("erode", config.field_erosion),
        ),
        tint=FIELD_TINT,
    )


def _public_layer(config: StabilizationConfig, rule: CompositeRule) -> MaskLayer:
    # Erosion drops stray grass-coloured pixels in the stands; the large
    # dilation then blankets the whole pitch.  Inverted: 255 = crowd.
    return MaskLayer(
        name="public",
        source=lambda frame: detect_background(frame, config.grass_hsv),
        rule=rule,
        operations=(
            MorphOp("erode", config.public_erosion),
            MorphOp("dilate", config.public_dilation),
        ),
        invert=True,
        tint=PUBLIC_TINT,
    )


def _overlay_layer(config: StabilizationConfig, overlay_offset: tuple[int, int]) -> MaskLayer:
    return MaskLayer(
        name="overlay",
        source=lambda frame: detect_overlay_panel(frame, config.overlay, overlay_offset),
        rule=CompositeRule.INCLUDE_WHERE_HIGH,
        tint=OVERLAY_TINT,
    )


def stabilization_layers(
    config: StabilizationConfig | None = None,
    overlay_offset: tuple[int, int] = (0, 0),
) -> list[MaskLayer]:
    """Layers marking movers and the overlay as excluded from motion estimation."""
    config = config or StabilizationConfig()
    return [
        _field_layer(config),
        _public_layer(config, CompositeRule.EXCLUDE_WHERE_HIGH),
        _overlay_layer(config, overlay_offset),
    ]


def singularity_layers(
    config: StabilizationConfig | None = None,
    overlay_offset: tuple[int, int] = (0, 0),
) -> list[MaskLayer]:
    """Layers marking crowd, overlay and frame edges as excluded from feature detection."""
    config = config or StabilizationConfig()
    border = config.singularity_border
    return [
        _public_layer(config, CompositeRule.INCLUDE_WHERE_HIGH),
        _overlay_layer(config, overlay_offset),
        MaskLayer(
            name="border",
            source=lambda frame: border_mask(frame.shape[0], frame.shape[1], border),
            rule=CompositeRule.INCLUDE_WHERE_HIGH,
            tint=BORDER_TINT,
        ),
    ]


def build_stabilization_mask(
    frame: np.ndarray,
    config: StabilizationConfig | None = None,
    overlay_offset: tuple[int, int] = (0, 0),
) -> np.ndarray:
    """Return the mask of pixels to exclude from camera-motion estimation."""
    return LayeredMasker(stabilization_layers(config, overlay_offset)).mask(frame)["mask"]


def build_singularity_mask(
    frame: np.ndarray,
    config: StabilizationConfig | None = None,
    overlay_offset: tuple[int, int] = (0, 0),
) -> np.ndarray:
    """Return the mask of pixels to exclude from singularity detection."""
    return LayeredMasker(singularity_layers(config, overlay_offset)).mask(frame)["mask"]
