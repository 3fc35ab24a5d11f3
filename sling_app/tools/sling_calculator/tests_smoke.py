from __future__ import annotations

import json
import threading
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict, Iterator, Tuple

import pytest
from loguru import logger

from sling_app.core.loader import discover_tools, get_tool
from sling_app.core.logging import configure_logging
from sling_app.core.paths import logs_dir, user_data_dir
from sling_app.core.schema_utils import validate_inputs
from sling_app.core.settings import get_setting, load_settings, save_settings

from .backend import app as backend_app
from .backend.app import backend_port, make_server
from .tool import TOOL


@pytest.fixture(autouse=True)
def _local_appdata(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    # force outputs to temp
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    monkeypatch.delenv("SLING_APP_PORT", raising=False)
    monkeypatch.setenv("SLING_APP_RUN_DIR", str(tmp_path / "backend"))
    return tmp_path


def _assert_exists(p: Path) -> None:
    assert p.exists(), f"Missing: {p}"


def _check_outputs(run_dir: Path) -> None:
    for name in ("report.html", "report.pdf", "calc_trace.json", "results.json", "results.xlsx", "run.log"):
        _assert_exists(run_dir / name)


def test_smoke_valid_lift(_local_appdata: Path) -> None:
    res = TOOL.run_batch(TOOL.default_inputs())
    assert res["ok"] is True, res.get("traceback")
    run_dir = Path(res["run_dir"])
    assert _local_appdata in run_dir.parents
    _check_outputs(run_dir)
    assert res["response"]["status"] == "valid"

    trace = json.loads((run_dir / "calc_trace.json").read_text(encoding="utf-8"))
    step_ids = [s["id"] for s in trace["steps"]]
    assert "S1-leg-1.angle" in step_ids
    assert "S1-leg-2.shackle" in step_ids
    assert "lateral.mitigated" in step_ids
    assert trace["meta"]["input_hash"] == res["input_hash"]
    assert "Sling Calculator" in (run_dir / "report.html").read_text(encoding="utf-8")


def test_smoke_blocked_lift_still_exports() -> None:
    inputs = TOOL.default_inputs()
    inputs["slings"][0]["wll_lbs"] = 5000.0
    res = TOOL.run_batch(inputs)
    assert res["ok"] is True
    assert res["response"]["reason"] == "wll_exceeded"
    _check_outputs(Path(res["run_dir"]))


def test_smoke_invalid_payload_still_exports() -> None:
    res = TOOL.run_batch({"units": "imperial"})
    assert res["ok"] is True
    assert res["response"]["reason"] == "invalid_request_payload"
    run_dir = Path(res["run_dir"])
    _check_outputs(run_dir)
    trace = json.loads((run_dir / "calc_trace.json").read_text(encoding="utf-8"))
    assert trace["steps"] == []


def test_run_is_headless_batch() -> None:
    res = TOOL.run({**TOOL.default_inputs(), "headless": True})
    assert res["ok"] is True
    assert res["response"]["status"] == "valid"


def test_same_inputs_same_hash_distinct_run_dirs() -> None:
    a = TOOL.run_batch(TOOL.default_inputs())
    b = TOOL.run_batch(TOOL.default_inputs())
    assert a["input_hash"] == b["input_hash"]
    assert a["run_dir"] != b["run_dir"]


def test_discover_tools() -> None:
    tools = discover_tools()
    assert any(t.meta.id == "sling_calculator" for t in tools)
    assert get_tool("sling_calculator") is TOOL
    with pytest.raises(KeyError):
        get_tool("crane_chart")


def test_validate_inputs_fills_defaults_and_reports_paths() -> None:
    norm, err = validate_inputs(TOOL.InputModel, TOOL.default_inputs())
    assert err is None
    assert norm["hardware"]["beam"] is None

    bad = TOOL.default_inputs()
    bad["slings"][0]["legs"] = 0
    norm, err = validate_inputs(TOOL.InputModel, bad)
    assert norm == {}
    assert err is not None and err.startswith("slings.0.legs:")


def test_settings_roundtrip(_local_appdata: Path) -> None:
    assert load_settings() == {}
    save_settings({"backend_port": 8765, "log_level": "debug"})
    assert get_setting("backend_port") == 8765
    assert get_setting("missing", "x") == "x"
    assert user_data_dir() == _local_appdata / "SlingApp"


def test_corrupt_settings_ignored() -> None:
    save_settings({})
    (user_data_dir() / "settings.json").write_text("{not json", encoding="utf-8")
    assert load_settings() == {}


def test_backend_port_from_env_then_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    assert backend_port() == 0
    save_settings({"backend_port": 8123})
    assert backend_port() == 8123
    monkeypatch.setenv("SLING_APP_PORT", "9001")
    assert backend_port() == 9001


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------

@pytest.fixture()
def backend() -> Iterator[str]:
    httpd = make_server(port=0)
    t = threading.Thread(target=httpd.serve_forever, daemon=True)
    t.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


def _get(url: str) -> Tuple[int, Dict[str, Any]]:
    with urllib.request.urlopen(url, timeout=10) as r:
        return r.status, json.loads(r.read().decode("utf-8"))


def _post(url: str, body: bytes) -> Tuple[int, Dict[str, Any]]:
    req = urllib.request.Request(url, data=body, headers={"Content-Type": "application/json"}, method="POST")
    try:
        with urllib.request.urlopen(req, timeout=10) as r:
            return r.status, json.loads(r.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read().decode("utf-8"))


def test_backend_health(backend: str) -> None:
    code, body = _get(backend + "/api/health")
    assert code == 200
    assert body["ok"] is True
    assert body["tool"] == "sling_calculator"


def test_backend_tables(backend: str) -> None:
    code, body = _get(backend + "/api/v1/sling/tables")
    assert code == 200
    assert body["tables"]["shackles"][0]["tonnage"] == 0.5


def test_backend_calculate_valid_and_blocked(backend: str) -> None:
    code, body = _post(backend + "/api/v1/sling/calculate", json.dumps(TOOL.default_inputs()).encode("utf-8"))
    assert code == 200
    assert body["status"] == "valid"

    inputs = TOOL.default_inputs()
    inputs["hook_interface"]["hook_height_limit_ft"] = 30.0
    code, body = _post(backend + "/api/v1/sling/calculate", json.dumps(inputs).encode("utf-8"))
    assert code == 200
    assert body["blocked"] is True
    assert body["reason"] == "hook_height_exceeded"


def test_backend_bad_json(backend: str) -> None:
    code, body = _post(backend + "/api/v1/sling/calculate", b"{nope")
    assert code == 400
    assert body["ok"] is False


def test_backend_unknown_route(backend: str) -> None:
    code, body = _post(backend + "/api/v1/other", b"{}")
    assert code == 404
    assert body["ok"] is False


def test_configure_logging_writes_app_log() -> None:
    configure_logging()
    try:
        logger.info("sling app logging configured")
        logger.complete()
    finally:
        logger.remove()
    log_file = logs_dir() / "sling_app.log"
    assert log_file.exists()
    assert "sling app logging configured" in log_file.read_text(encoding="utf-8")


def test_backend_main_configures_logging(_local_appdata: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class _IdleServer:
        server_address = ("127.0.0.1", 8765)

        def serve_forever(self) -> None:
            pass

    monkeypatch.setattr(backend_app, "make_server", lambda *a, **k: _IdleServer())
    try:
        backend_app.main()
        logger.complete()
    finally:
        logger.remove()
    assert (_local_appdata / "backend" / "server_port.txt").read_text(encoding="utf-8") == "8765"
    log_file = logs_dir() / "sling_app.log"
    assert "Sling backend listening on 127.0.0.1:8765" in log_file.read_text(encoding="utf-8")


def test_blocked_angle_run_traces_leg_geometry() -> None:
    inputs = TOOL.default_inputs()
    inputs["geometry"]["pick_points"] = [
        {"id": "P1", "x_ft": 0.0, "y_ft": 0.0, "z_ft": 1.0},
        {"id": "P2", "x_ft": 30.0, "y_ft": 0.0, "z_ft": 1.0},
    ]
    res = TOOL.run_batch(inputs)
    assert res["ok"] is True, res.get("traceback")
    assert res["response"]["reason"] == "sling_angle_below_minimum"

    trace = json.loads((Path(res["run_dir"]) / "calc_trace.json").read_text(encoding="utf-8"))
    steps = {s["id"]: s for s in trace["steps"]}
    assert set(steps) == {"S1-leg-1.angle", "S1-leg-2.angle"}
    angle = steps["S1-leg-1.angle"]
    assert angle["reported"] == 41.4
    assert [c["status"] for c in angle["checks"]] == ["FAIL"]


def test_blocked_hardware_run_keeps_full_trace() -> None:
    inputs = TOOL.default_inputs()
    inputs["slings"][0]["wll_lbs"] = 5000.0
    res = TOOL.run_batch(inputs)
    trace = json.loads((Path(res["run_dir"]) / "calc_trace.json").read_text(encoding="utf-8"))
    assert "S1-leg-1.shackle" in [s["id"] for s in trace["steps"]]
