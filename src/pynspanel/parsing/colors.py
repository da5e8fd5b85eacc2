"""Colour wheel position mapping for the HMI colour picker."""

from __future__ import annotations

import colorsys
import math

# Edge length in pixels of the square colour wheel on the HMI.
HMI_COLOR_WHEEL_SIZE = 160


def hmi_pos_to_color(
    x: float,
    y: float,
    wheel_size: int = HMI_COLOR_WHEEL_SIZE,
) -> tuple[tuple[int, int, int], tuple[float, float, float]]:
    """Convert a touch position on the colour wheel to ``(rgb, hsv)``.

    The wheel centre is white; hue follows the polar angle (0° to the
    right, counter-clockwise) and saturation the distance from the
    centre. Positions outside the wheel radius are treated as white.

    ``rgb`` components are 0-255, ``hsv`` is ``(hue in degrees, saturation
    0-1, value 0-1)``.
    """
    radius = wheel_size / 2
    nx = round((x - radius) / radius, 2)
    ny = round((radius - y) / radius, 2)

    distance = math.sqrt(nx * nx + ny * ny)
    saturation = 0.0 if distance > 1 else distance
    hue = math.degrees(math.atan2(ny, nx)) % 360

    r, g, b = colorsys.hsv_to_rgb(hue / 360, saturation, 1.0)
    rgb = (round(r * 255), round(g * 255), round(b * 255))
    return rgb, (hue, saturation, 1.0)
