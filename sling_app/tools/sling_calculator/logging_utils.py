from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Tuple

from loguru import logger


def get_run_logger(run_dir: Path, tool_id: str, input_hash: Optional[str] = None) -> Tuple[Any, int]:
    """Run-scoped logger writing to <run_dir>/run.log.

    The host configures loguru once (sling_app.core.logging); this only adds a
    sink filtered to records bound to this tool and run directory.

    Returns (bound_logger, sink_id).
    """
    run_dir.mkdir(parents=True, exist_ok=True)
    log_path = run_dir / "run.log"

    bound = logger.bind(tool_id=tool_id, run_dir=str(run_dir), input_hash=input_hash or "")
    sink_id = logger.add(
        str(log_path),
        level="DEBUG",
        enqueue=False,
        backtrace=True,
        diagnose=False,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[tool_id]} | {extra[input_hash]} | {message}",
        filter=lambda r: r["extra"].get("tool_id") == tool_id and r["extra"].get("run_dir") == str(run_dir),
    )
    return bound, int(sink_id)


def remove_run_logger_sink(sink_id: Optional[int]) -> None:
    if sink_id is None:
        return
    try:
        logger.remove(sink_id)
    except ValueError:
        # already removed (e.g. host called logger.remove() in between)
        pass


@contextmanager
def run_logger(run_dir: Path, tool_id: str, input_hash: Optional[str] = None) -> Iterator[Any]:
    """`with run_logger(run_dir, TOOL_ID, ih) as log:` - the run.log sink lives for the block."""
    bound, sink_id = get_run_logger(run_dir, tool_id, input_hash)
    try:
        yield bound
    finally:
        remove_run_logger_sink(sink_id)
