"""
Sling and shackle selection against capacity tables.

Sling:
  - minimum WLL >= T, recommended WLL >= 1.5 T, both from the same material
  - material order: synthetic -> wire rope -> chain
  - sharp edges exclude synthetic outright

Shackle (carbon steel only):
  - governing load = max(1.25 T, sling minimum WLL); the 1.25 connection
    factor applies to the tension-derived requirement only
  - smallest shackle with WLL >= governing load, never below 0.5 ton
"""
from __future__ import annotations

from typing import Tuple

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables, first_at_least

from .constants import MIN_SHACKLE_TONNAGE, RECOMMENDED_WLL_FACTOR, SHACKLE_CONNECTION_FACTOR
from .errors import BelowMinimumSize, InvalidTensionInput, NoCompliantShackle, NoCompliantSling
from .models import ShackleSelection, SlingSelection


def material_order(sharp_edge_present: bool) -> Tuple[str, ...]:
    if sharp_edge_present:
        return ("wire_rope", "chain")
    return ("synthetic", "wire_rope", "chain")


def select_sling(
    required_tension_lbs: float,
    sharp_edge_present: bool,
    tables: CapacityTables = DEFAULT_TABLES,
) -> SlingSelection:
    if not required_tension_lbs > 0:
        raise InvalidTensionInput(f"Required tension must be greater than zero (got {required_tension_lbs}).")

    recommended_tension = required_tension_lbs * RECOMMENDED_WLL_FACTOR

    for material in material_order(sharp_edge_present):
        rows = tables.sling_rows(material)
        minimum = first_at_least(rows, required_tension_lbs)
        recommended = first_at_least(rows, recommended_tension)
        if minimum is not None and recommended is not None:
            return SlingSelection(
                material=material,
                minimum_wll_lbs=minimum.wll_lbs,
                recommended_wll_lbs=recommended.wll_lbs,
                selected_size=minimum.size,
                recommended_size=recommended.size,
            )

    raise NoCompliantSling(
        f"No compliant sling found for {required_tension_lbs:.0f} lb tension "
        f"({recommended_tension:.0f} lb recommended) in {', '.join(material_order(sharp_edge_present))} tables."
    )


def select_shackle(
    applied_tension_lbs: float,
    sling_wll_lbs: float,
    tables: CapacityTables = DEFAULT_TABLES,
) -> ShackleSelection:
    if not applied_tension_lbs > 0:
        raise InvalidTensionInput(f"Applied load must be greater than zero (got {applied_tension_lbs}).")
    if not sling_wll_lbs > 0:
        raise InvalidTensionInput(f"Sling WLL must be greater than zero (got {sling_wll_lbs}).")

    from_tension = applied_tension_lbs * SHACKLE_CONNECTION_FACTOR
    if from_tension >= sling_wll_lbs:
        required, factor, basis = from_tension, SHACKLE_CONNECTION_FACTOR, "tension"
    else:
        required, factor, basis = sling_wll_lbs, 1.0, "sling_wll"

    row = first_at_least(tables.shackles, required)
    if row is None:
        raise NoCompliantShackle(f"No compliant carbon steel shackle found for {required:.0f} lb governing load.")
    if row.tonnage < MIN_SHACKLE_TONNAGE:
        raise BelowMinimumSize(
            f"Shackle {row.size} ({row.tonnage} t) is below the minimum allowed size of {MIN_SHACKLE_TONNAGE} ton."
        )

    return ShackleSelection(
        size=row.size,
        tonnage=row.tonnage,
        wll_lbs=row.wll_lbs,
        weight_lbs=row.weight_lbs,
        required_capacity_lbs=required,
        applied_factor=factor,
        sized_from=basis,
    )
