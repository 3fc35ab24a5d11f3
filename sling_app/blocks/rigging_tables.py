"""
Rigging hardware capacity tables (US customary, pounds).

All capacities are vertical-rating Working Load Limits. Rows are ordered
ascending by WLL and lookup is "first row whose WLL >= required load".
Carbon steel shackles only; alloy shackles are not part of the data.

Tables are immutable and passed to the calculation functions explicitly, so
alternate (regional/metric/fixture) tables can be substituted.
"""
from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple, TypeVar

SlingMaterial = Literal["synthetic", "wire_rope", "chain"]

MATERIALS: Tuple[SlingMaterial, ...] = ("synthetic", "wire_rope", "chain")


class TableInvariantError(ValueError):
    """A capacity table is empty, unsorted or carries non-positive ratings."""


@dataclass(frozen=True)
class CapacityRow:
    size: str
    wll_lbs: float


@dataclass(frozen=True)
class ShackleRow(CapacityRow):
    tonnage: float
    weight_lbs: float


RowT = TypeVar("RowT", bound=CapacityRow)


def first_at_least(rows: Sequence[RowT], required_lbs: float) -> Optional[RowT]:
    """First row with WLL >= required_lbs (ties at equality select that row)."""
    keys = [r.wll_lbs for r in rows]
    i = bisect_left(keys, required_lbs)
    return rows[i] if i < len(rows) else None


def _check_rows(name: str, rows: Sequence[CapacityRow]) -> None:
    if not rows:
        raise TableInvariantError(f"Capacity table '{name}' is empty.")
    prev = 0.0
    for r in rows:
        if r.wll_lbs <= 0:
            raise TableInvariantError(f"Capacity table '{name}' row {r.size!r} has non-positive WLL.")
        if r.wll_lbs < prev:
            raise TableInvariantError(f"Capacity table '{name}' is not ordered ascending at {r.size!r}.")
        prev = r.wll_lbs


@dataclass(frozen=True)
class CapacityTables:
    slings: Mapping[str, Tuple[CapacityRow, ...]]
    shackles: Tuple[ShackleRow, ...]
    sling_weight_lbs_per_ft: Mapping[str, float] = field(default_factory=dict)
    name: str = "custom"

    def __post_init__(self) -> None:
        slings = {str(k): tuple(v) for k, v in self.slings.items()}
        for material, rows in slings.items():
            if material not in MATERIALS:
                raise TableInvariantError(f"Unknown sling material: {material}")
            _check_rows(material, rows)
        _check_rows("shackles", self.shackles)
        object.__setattr__(self, "slings", MappingProxyType(slings))
        object.__setattr__(self, "shackles", tuple(self.shackles))
        object.__setattr__(self, "sling_weight_lbs_per_ft", MappingProxyType(dict(self.sling_weight_lbs_per_ft)))

    def sling_rows(self, material: str) -> Tuple[CapacityRow, ...]:
        return self.slings.get(material, ())

    def sling_weight_per_ft(self, material: str) -> float:
        return float(self.sling_weight_lbs_per_ft.get(material, 0.0))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "slings": {m: [{"size": r.size, "wll_lbs": r.wll_lbs} for r in rows] for m, rows in self.slings.items()},
            "shackles": [
                {"size": r.size, "tonnage": r.tonnage, "wll_lbs": r.wll_lbs, "weight_lbs": r.weight_lbs}
                for r in self.shackles
            ],
            "sling_weight_lbs_per_ft": dict(self.sling_weight_lbs_per_ft),
        }


# Synthetic round slings, vertical rating
SYNTHETIC_ROUND_SLING = (
    CapacityRow("1 ton (purple)", 2000),
    CapacityRow("2 ton (green)", 4000),
    CapacityRow("3 ton (yellow)", 6000),
    CapacityRow("4 ton (tan)", 8000),
    CapacityRow("5 ton (red)", 10000),
    CapacityRow("6 ton (white)", 12000),
    CapacityRow("7.5 ton (blue)", 15000),
    CapacityRow("10 ton (orange)", 20000),
    CapacityRow("12.5 ton (gray)", 25000),
    CapacityRow("15.5 ton (brown)", 31000),
    CapacityRow("33 ton (olive)", 66000),
    CapacityRow("45 ton (black)", 90000),
    CapacityRow("50 ton (black)", 100000),
    CapacityRow("55 ton (black)", 110000),
)

# Wire rope slings 6x19 / 6x36 EIPS, vertical rating
WIRE_ROPE_SLING = (
    CapacityRow("1/2 in", 8600),
    CapacityRow("5/8 in", 13200),
    CapacityRow("3/4 in", 19600),
    CapacityRow("7/8 in", 26600),
    CapacityRow("1 in", 34200),
    CapacityRow("1-1/8 in", 43200),
    CapacityRow("1-1/4 in", 53200),
    CapacityRow("1-1/2 in", 72000),
    CapacityRow("1-3/4 in", 96000),
    CapacityRow("2 in", 120000),
)

# Grade 80 chain slings, vertical rating
CHAIN_SLING = (
    CapacityRow("1/4 in G80", 3500),
    CapacityRow("5/16 in G80", 4500),
    CapacityRow("3/8 in G80", 7100),
    CapacityRow("1/2 in G80", 12000),
    CapacityRow("5/8 in G80", 18100),
    CapacityRow("3/4 in G80", 28300),
)

# Carbon steel screw-pin / bolt-type shackles, 5:1 design factor
CARBON_STEEL_SHACKLE = (
    ShackleRow("1/4 in", 1102, 0.5, 0.1),
    ShackleRow("5/16 in", 1653, 0.75, 0.19),
    ShackleRow("3/8 in", 2204, 1.0, 0.31),
    ShackleRow("7/16 in", 3306, 1.5, 0.38),
    ShackleRow("1/2 in", 4409, 2.0, 0.72),
    ShackleRow("5/8 in", 7165, 3.25, 1.37),
    ShackleRow("3/4 in", 10471, 4.75, 2.35),
    ShackleRow("7/8 in", 14330, 6.5, 3.62),
    ShackleRow("1 in", 18739, 8.5, 5.03),
    ShackleRow("1-1/8 in", 20943, 9.5, 7.41),
    ShackleRow("1-1/4 in", 26455, 12.0, 9.5),
    ShackleRow("1-3/8 in", 29762, 13.5, 13.53),
    ShackleRow("1-1/2 in", 37478, 17.0, 17.2),
    ShackleRow("1-3/4 in", 55115, 25.0, 27.78),
    ShackleRow("2 in", 77161, 35.0, 45.0),
    ShackleRow("2-1/2 in", 121254, 55.0, 85.75),
    ShackleRow("2-1/2 in (85T)", 187392, 85.0, 103.0),
)

# Sling self weight used for rigging weight [lb/ft of leg]
SLING_WEIGHT_LBS_PER_FT = {
    "wire_rope": 1.5,
    "chain": 2.2,
    "synthetic": 0.4,
}

DEFAULT_TABLES = CapacityTables(
    slings={
        "synthetic": SYNTHETIC_ROUND_SLING,
        "wire_rope": WIRE_ROPE_SLING,
        "chain": CHAIN_SLING,
    },
    shackles=CARBON_STEEL_SHACKLE,
    sling_weight_lbs_per_ft=SLING_WEIGHT_LBS_PER_FT,
    name="US customary (default)",
)
