from __future__ import annotations

import math

from .errors import InvalidTensionInput


def sling_tension_lbs(load_share_lbs: float, angle_deg: float) -> float:
    """
    T = W / sin(theta), theta from horizontal.

    No safety, reduction or connection factors are applied here.
    """
    if not load_share_lbs > 0:
        raise InvalidTensionInput(f"Load share must be greater than zero (got {load_share_lbs}).")
    if not 0.0 < angle_deg < 90.0:
        raise InvalidTensionInput(f"Sling angle must be between 0 and 90 degrees exclusive (got {angle_deg}).")
    return load_share_lbs / math.sin(math.radians(angle_deg))


def lateral_force_lbs(tension_lbs: float, angle_deg: float) -> float:
    """Horizontal component of a leg: F_h = T cos(theta)."""
    if not tension_lbs > 0:
        raise InvalidTensionInput(f"Sling tension must be greater than zero (got {tension_lbs}).")
    if not 0.0 <= angle_deg <= 90.0:
        raise InvalidTensionInput(f"Sling angle must be between 0 and 90 degrees (got {angle_deg}).")
    if angle_deg == 90.0:
        return 0.0
    return tension_lbs * math.cos(math.radians(angle_deg))


def lateral_percent(lateral_force: float, total_load_lbs: float) -> float:
    return lateral_force / total_load_lbs * 100.0
