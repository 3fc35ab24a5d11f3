"""
Local JSON backend for the sling calculator.

  GET  /api/health
  GET  /api/v1/sling/tables
  POST /api/v1/sling/calculate

Valid and blocked lifts both return 200; the verdict is in the body.
"""
from __future__ import annotations

import json
import os
import traceback
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from loguru import logger
from pydantic import ValidationError

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables
from sling_app.core.logging import configure_logging
from sling_app.core.settings import get_setting

from ..calculate import calculate_sling
from ..constants import TOOL_ID, TOOL_VERSION
from ..errors import RiggingContractError
from ..paths import runs_root


def _run_dir() -> Path:
    p = Path(os.environ.get("SLING_APP_RUN_DIR") or str(runs_root(TOOL_ID) / "dev_run"))
    p.mkdir(parents=True, exist_ok=True)
    return p


def backend_port() -> int:
    env = os.environ.get("SLING_APP_PORT")
    if env:
        return int(env)
    return int(get_setting("backend_port", 0) or 0)


class Handler(BaseHTTPRequestHandler):
    tables: CapacityTables = DEFAULT_TABLES

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("backend {} - {}", self.address_string(), format % args)

    def _send_json(self, obj: Any, code: int = 200) -> None:
        data = json.dumps(obj).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self) -> None:
        u = urlparse(self.path)
        if u.path == "/api/health":
            return self._send_json({"ok": True, "tool": TOOL_ID, "version": TOOL_VERSION})
        if u.path == "/api/v1/sling/tables":
            return self._send_json({"ok": True, "tables": self.tables.as_dict()})
        return self._send_json({"ok": False, "error": "Not found"}, 404)

    def do_POST(self) -> None:
        u = urlparse(self.path)
        if u.path != "/api/v1/sling/calculate":
            return self._send_json({"ok": False, "error": "Not found"}, 404)

        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length).decode("utf-8")
        try:
            payload = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            return self._send_json({"ok": False, "error": f"Invalid JSON: {e}"}, 400)
        if not isinstance(payload, dict):
            return self._send_json({"ok": False, "error": "Request body must be a JSON object"}, 400)

        try:
            return self._send_json(calculate_sling(payload, self.tables))
        except (RiggingContractError, ValidationError) as e:
            tb = traceback.format_exc()
            (_run_dir() / "error.log").write_text(tb, encoding="utf-8")
            return self._send_json({"ok": False, "error": str(e), "detail": tb.splitlines()[-1]}, 500)


def make_server(port: Optional[int] = None, tables: Optional[CapacityTables] = None) -> ThreadingHTTPServer:
    handler = Handler
    if tables is not None:
        handler = type("SlingHandler", (Handler,), {"tables": tables})
    return ThreadingHTTPServer(("127.0.0.1", backend_port() if port is None else port), handler)


def main() -> None:
    configure_logging()
    httpd = make_server()
    actual_port = httpd.server_address[1]
    try:
        (_run_dir() / "server_port.txt").write_text(str(actual_port), encoding="utf-8")
    except OSError:
        logger.warning("Could not write server_port.txt")
    logger.info(f"Sling backend listening on 127.0.0.1:{actual_port}")
    httpd.serve_forever()


if __name__ == "__main__":
    main()
