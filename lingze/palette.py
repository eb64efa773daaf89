"""Packed colours and a hash-based pseudo-random colour."""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF


def rgba_le(color: int) -> int:
    """Reverse the byte order of a 32-bit ``0xRRGGBBAA`` colour."""
    color &= _MASK32
    return int.from_bytes(color.to_bytes(4, "big"), "little")


def random_color(seed: int) -> tuple[float, float, float]:
    """Hash ``seed`` into an RGB colour with components in [0, 1]."""
    seed &= _MASK32
    seed = (seed ^ 61) ^ (seed >> 16)
    seed = (seed * 9) & _MASK32
    seed ^= seed >> 4
    seed = (seed * 0x27D4EB2D) & _MASK32
    seed ^= seed >> 15
    return (
        (seed & 0xFF) / 255.0,
        ((seed >> 8) & 0xFF) / 255.0,
        ((seed >> 16) & 0xFF) / 255.0,
    )


TURQUOISE = rgba_le(0x1ABC9CFF)
GREEN_SEA = rgba_le(0x16A085FF)
EMERALD = rgba_le(0x2ECC71FF)
NEPHRITIS = rgba_le(0x27AE60FF)
PETER_RIVER = rgba_le(0x3498DBFF)
BELIZE_HOLE = rgba_le(0x2980B9FF)
AMETHYST = rgba_le(0x9B59B6FF)
WISTERIA = rgba_le(0x8E44ADFF)
SUN_FLOWER = rgba_le(0xF1C40FFF)
ORANGE = rgba_le(0xF39C12FF)
CARROT = rgba_le(0xE67E22FF)
PUMPKIN = rgba_le(0xD35400FF)
ALIZARIN = rgba_le(0xE74C3CFF)
POMEGRANATE = rgba_le(0xC0392BFF)
CLOUDS = rgba_le(0xECF0F1FF)
SILVER = rgba_le(0xBDC3C7FF)
IMGUI_TEXT = rgba_le(0xF2F5FAFF)