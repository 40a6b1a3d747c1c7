"""CHIP-8 framebuffer rendering for host front-ends.

Framebuffers are boolean arrays indexed ``[x, y]``; every helper here turns
them into row-major RGB images (``[y, x, channel]``) first.
"""
import time
from typing import Iterator, Optional, Tuple

import cv2
import jax.numpy as jnp
import numpy as np
from PIL import Image

from chip8core.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}

PHOSPHOR_DECAY = 0.8


def _check_shape(shape, batched: bool = False):
    expected = (SCREEN_WIDTH, SCREEN_HEIGHT)
    if (shape[1:] if batched else shape) != expected or len(shape) != 2 + batched:
        prefix = "(N, " if batched else "("
        raise ValueError(f"Expected display shape {prefix}64, 32), got {shape}")


def _upscale(image: np.ndarray, scale: int) -> np.ndarray:
    """Nearest-neighbour upscaling of a row-major image."""
    if scale <= 1:
        return image
    return np.repeat(np.repeat(image, scale, axis=0), scale, axis=1)


def _shade(intensity: np.ndarray, on_color: Color, off_color: Color) -> np.ndarray:
    """Blend between the two colours. ``intensity`` is (32, 64) in [0, 1]."""
    on = np.asarray(on_color, dtype=np.float32)
    off = np.asarray(off_color, dtype=np.float32)
    rgb = off + intensity[..., None] * (on - off)
    return np.rint(rgb).astype(np.uint8)


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (0, 255, 0),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert a CHIP-8 boolean display to an RGB image.

    Args:
        display: Boolean array of shape (64, 32) indexed [x, y]
        scale: Upscaling factor (default: 8x)
        on_color: RGB color for lit pixels
        off_color: RGB color for dark pixels

    Returns:
        uint8 array of shape (32*scale, 64*scale, 3)
    """
    pixels = np.asarray(display, dtype=np.bool_)
    _check_shape(pixels.shape)
    return _upscale(_shade(pixels.T.astype(np.float32), on_color, off_color), scale)


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up ``(on_color, off_color)`` for a named scheme."""
    if scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        )
    return COLOR_SCHEMES[scheme]


def save_frame(display: jnp.ndarray, filename: str, scale: int = 8, color_scheme: str = "classic") -> None:
    """Write a single framebuffer to an image file (format from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    Image.fromarray(chip8_display_to_rgb(display, scale, on_color, off_color)).save(filename)


def phosphor_frames(displays: np.ndarray, persistence: bool = True) -> Iterator[np.ndarray]:
    """Yield (32, 64) intensity images, fading lit pixels out over a few frames."""
    glow = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=np.float32)
    for display in displays:
        lit = display.T.astype(np.float32)
        glow = np.clip(glow * PHOSPHOR_DECAY + lit, 0.0, 1.0) if persistence else lit
        yield glow


def _wait_for_window(delay: float) -> bool:
    """Handle window keys for ``delay`` seconds. Returns False when the user quits."""
    paused = False
    deadline = time.time() + delay
    while True:
        key = cv2.waitKey(30 if paused else 1) & 0xFF
        if key in (ord('q'), 27):
            return False
        if key == ord(' '):
            paused = not paused
        if not paused and time.time() >= deadline:
            return True


def create_video(
        displays: jnp.ndarray,
        filename: Optional[str] = None,
        fps: float = 60.0,
        scale: int = 8,
        color_scheme: str = "classic",
        persistence: bool = True,
        display: bool = False
) -> None:
    """Write and/or show a sequence of framebuffers.

    Args:
        displays: Framebuffers with shape (N, 64, 32), e.g. from ``runner.run_frames``
        filename: If provided, save an MP4 to this path
        fps: Video frame rate
        scale: Upscaling factor
        color_scheme: Color scheme for rendering
        persistence: Simulate phosphor afterglow
        display: Show the frames in a window (q quits, space pauses)
    """
    if filename is None and not display:
        return
    displays = np.asarray(displays)
    _check_shape(displays.shape, batched=True)

    on_color, off_color = create_color_scheme(color_scheme)
    size = (SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale)
    writer = cv2.VideoWriter(filename, cv2.VideoWriter_fourcc(*'mp4v'), fps, size) if filename else None
    window_name = "CHIP-8 (q=quit, space=pause)"
    if display:
        cv2.namedWindow(window_name, cv2.WINDOW_AUTOSIZE)

    try:
        for intensity in phosphor_frames(displays, persistence):
            started = time.time()
            frame = cv2.cvtColor(_upscale(_shade(intensity, on_color, off_color), scale), cv2.COLOR_RGB2BGR)
            if writer is not None:
                writer.write(frame)
            if display:
                cv2.imshow(window_name, frame)
                if not _wait_for_window(1.0 / fps - (time.time() - started)):
                    break
    finally:
        if writer is not None:
            writer.release()
        if display:
            cv2.destroyAllWindows()
