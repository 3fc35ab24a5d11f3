"""
Failure taxonomy.

RiggingRejection subclasses are expected business verdicts (the lift is not
acceptable as configured); each carries the response reason code. The engine
turns them into an EngineRejection.

RiggingContractError subclasses mean an upstream contract was broken
(validator let bad data through, table invariant violated). They are never
converted into a verdict and always propagate.
"""
from __future__ import annotations

from typing import Literal, Optional

BlockedReason = Literal[
    "sling_angle_below_minimum",
    "sling_length_exceeds_maximum",
    "wll_exceeded",
    "top_rigging_wll_exceeded",
    "shackle_wll_exceeded",
    "invalid_pick_point_geometry",
    "legs_pick_points_mismatch",
    "lateral_pressure_exceeded",
    "hook_height_exceeded",
    "invalid_request_payload",
    "unsupported_configuration",
]


class RiggingError(Exception):
    pass


class RiggingRejection(RiggingError):
    reason: BlockedReason = "unsupported_configuration"

    def __init__(self, message: str, reason: Optional[BlockedReason] = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class AngleBelowMinimum(RiggingRejection):
    reason: BlockedReason = "sling_angle_below_minimum"


class NoCompliantSling(RiggingRejection):
    reason: BlockedReason = "wll_exceeded"


class NoCompliantShackle(RiggingRejection):
    reason: BlockedReason = "shackle_wll_exceeded"


class BelowMinimumSize(RiggingRejection):
    reason: BlockedReason = "unsupported_configuration"


class BeamWeightMissing(RiggingRejection):
    reason: BlockedReason = "lateral_pressure_exceeded"


class RiggingContractError(RiggingError):
    pass


class InvalidGeometry(RiggingContractError):
    pass


class InvalidTensionInput(RiggingContractError):
    pass


class InvalidMitigationGeometry(RiggingContractError):
    pass


class GoverningLegNotFound(RiggingContractError):
    pass
