from __future__ import annotations

import hashlib
import json
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from sling_app.core.paths import tool_dir

from .constants import TOOL_ID


def runs_root(tool_id: str = TOOL_ID) -> Path:
    return tool_dir(tool_id) / "runs"


def normalize_inputs(inputs: Any) -> Any:
    """Sorted keys, stable float repr; nested dicts/lists included."""
    if isinstance(inputs, dict):
        return {k: normalize_inputs(inputs[k]) for k in sorted(inputs.keys())}
    if isinstance(inputs, list):
        return [normalize_inputs(x) for x in inputs]
    if isinstance(inputs, float):
        return float(f"{inputs:.12g}")
    return inputs


def input_hash(inputs: dict) -> str:
    blob = json.dumps(normalize_inputs(inputs), sort_keys=True, separators=(",", ":"), ensure_ascii=True)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()[:12]


def create_run_dir(tool_id: str = TOOL_ID, inputs_hash: Optional[str] = None) -> Path:
    """
    <user data>/SlingApp/<tool_id>/runs/YYYYMMDD_HHMMSS_<short_hash>/

    Never inside the code directory. Two runs in the same second with the same
    inputs still get distinct folders.
    """
    root = runs_root(tool_id)
    root.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    seed = f"{ts}:{os.getpid()}:{time.time_ns()}"
    rand = hashlib.sha256(seed.encode("utf-8")).hexdigest()[:8]
    short = f"{inputs_hash[:6]}{rand[:2]}" if inputs_hash else rand

    run_dir = root / f"{ts}_{short}"
    run_dir.mkdir(parents=True, exist_ok=False)
    return run_dir
