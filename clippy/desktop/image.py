"""
Anchor image helpers.

The character picture usually ships on a flat background. We guess that
background from the border pixels and make everything close to it
transparent, together with near-white and already translucent pixels.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

BORDER_SAMPLE = 10
QUANTIZE_STEP = 10
WHITE_DISTANCE = 30.0
BRIGHTNESS_CUTOFF = 240
ALPHA_CUTOFF = 128


def border_color(rgb: np.ndarray, sample: int = BORDER_SAMPLE) -> np.ndarray:
    """Most common colour (quantized) among pixels near the image border."""
    h, w = rgb.shape[:2]
    depth = max(1, min(sample, h // 2, w // 2))

    edges = np.concatenate([
        rgb[:depth].reshape(-1, 3),
        rgb[-depth:].reshape(-1, 3),
        rgb[:, :depth].reshape(-1, 3),
        rgb[:, -depth:].reshape(-1, 3),
    ])
    quantized = (edges // QUANTIZE_STEP) * QUANTIZE_STEP
    (color, _), = Counter(map(tuple, quantized.tolist())).most_common(1)
    return np.array(color, dtype=np.float32)


def remove_background(image: Image.Image, threshold: float = 50.0) -> Image.Image:
    """
    Return an RGBA copy with the background made transparent.

    A pixel is cleared when its Euclidean RGB distance to the modal
    border colour is below `threshold`, when it is near white, or when
    its alpha is already below 128.
    """
    rgba = np.array(image.convert("RGBA"))
    rgb = rgba[..., :3].astype(np.float32)
    alpha = rgba[..., 3]

    background = border_color(rgba[..., :3])
    distance = np.sqrt(((rgb - background) ** 2).sum(axis=-1))
    white_distance = np.sqrt(((rgb - 255.0) ** 2).sum(axis=-1))
    brightness = rgb.mean(axis=-1)

    clear = (
        (distance < threshold)
        | (alpha < ALPHA_CUTOFF)
        | (brightness > BRIGHTNESS_CUTOFF)
        | (white_distance < WHITE_DISTANCE)
    )
    rgba[..., 3] = np.where(clear, 0, alpha).astype(np.uint8)

    logger.debug(f"Background {tuple(int(c) for c in background)}: cleared {int(clear.sum())} px")
    return Image.fromarray(rgba, "RGBA")


def placeholder_image(size: int = 133) -> Image.Image:
    """Simple drawn character used when no picture is configured."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    pad = size // 8
    draw.ellipse((pad, pad, size - pad, size - pad), fill=(99, 102, 241, 255))
    eye = size // 10
    for cx in (size * 0.38, size * 0.62):
        draw.ellipse((cx - eye / 2, size * 0.38, cx + eye / 2, size * 0.38 + eye), fill=(255, 255, 255, 255))
    draw.arc((size * 0.32, size * 0.45, size * 0.68, size * 0.7), 20, 160, fill=(255, 255, 255, 255), width=3)
    return image


def load_anchor_image(
    path: Optional[str],
    max_size: int = 133,
    threshold: float = 50.0,
) -> Image.Image:
    """
    Load the character picture, strip its background and fit it in
    a `max_size` square. Falls back to a drawn placeholder.
    """
    if path:
        image_path = Path(path)
        try:
            with Image.open(image_path) as source:
                image = remove_background(source, threshold)
            image.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
            logger.info(f"🖼️ Loaded {image_path.name} ({image.width}x{image.height})")
            return image
        except OSError as e:
            logger.warning(f"Could not load image {image_path}: {e}")

    return placeholder_image(max_size)
