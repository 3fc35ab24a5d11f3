from __future__ import annotations
import importlib
import pkgutil
from typing import Dict, List

from loguru import logger

from .tool_base import ToolBase

TOOLS_PKG = "sling_app.tools"


def discover_tools(package: str = TOOLS_PKG) -> List[ToolBase]:
    """
    Imports every sub-package of `package` and collects its `TOOL` export.

    A plugin that fails to import is logged and skipped so one broken
    calculator does not take the host down.
    """
    found: Dict[str, ToolBase] = {}
    pkg = importlib.import_module(package)
    for m in pkgutil.iter_modules(pkg.__path__):
        if not m.ispkg:
            continue
        mod_name = f"{package}.{m.name}"
        try:
            tool = getattr(importlib.import_module(mod_name), "TOOL", None)
        except Exception as e:
            logger.exception(f"Failed loading tool {mod_name}: {e}")
            continue
        if tool is None:
            logger.warning(f"Module {mod_name} has no TOOL export; skipping.")
            continue
        if tool.meta.id in found:
            logger.warning(f"Duplicate tool id {tool.meta.id!r} in {mod_name}; keeping the first.")
            continue
        found[tool.meta.id] = tool
    return sorted(found.values(), key=lambda t: (t.meta.category.lower(), t.meta.name.lower()))


def get_tool(tool_id: str, package: str = TOOLS_PKG) -> ToolBase:
    for tool in discover_tools(package):
        if tool.meta.id == tool_id:
            return tool
    raise KeyError(f"No tool with id {tool_id!r}")
