"""
Tests for tools/determinism_guard.py (loaded by path; tools/ is not a package).
"""

import importlib.util
import json

import pytest

from conftest import PROJECT_ROOT


@pytest.fixture(scope="module")
def guard():
    path = PROJECT_ROOT / "tools" / "determinism_guard.py"
    spec = importlib.util.spec_from_file_location("determinism_guard", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def kinds(findings):
    return [f["kind"] for f in findings]


def test_flags_wall_clock(guard):
    src = "import time\nimport datetime\nt = time.time()\nd = datetime.datetime.now()\n"
    assert kinds(guard.scan_source(src)) == ["wall_clock_time", "wall_clock_time"]


def test_perf_counter_is_allowed(guard):
    assert guard.scan_source("import time\nt0 = time.perf_counter()\n") == []


def test_flags_global_rng_and_hash(guard):
    src = "import random\nx = random.randint(0, 3)\ny = hash((1, 2))\n"
    assert kinds(guard.scan_source(src)) == ["global_rng", "unstable_hash"]


def test_seeded_rng_instance_is_allowed(guard):
    src = "from mapper.sim.determinism import get_rng\nrng = get_rng('x')\nv = rng.random()\n"
    assert guard.scan_source(src) == []


def test_flags_pygame_imports(guard):
    src = "import pygame\nfrom pygame import draw\n"
    findings = guard.scan_source(src, "mapper/systems/bad.py")
    assert kinds(findings) == ["render_import", "render_import"]
    assert findings[0]["file"] == "mapper/systems/bad.py"
    assert findings[1]["line"] == 2


def test_syntax_error_is_reported(guard):
    assert kinds(guard.scan_source("def broken(:\n")) == ["parse_error"]


def test_hull_systems_pass(guard, capsys):
    assert guard.main(["--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["files"] >= 6
    assert report["findings"] == []


def test_graphics_are_excluded(guard):
    files = guard.iter_py_files(guard.DEFAULT_SCAN_PATHS, exclude_dirs=guard.DEFAULT_EXCLUDE_DIRS)
    names = {p.name for p in files}
    assert "hull_scheduler.py" in names
    assert "survey_world.py" in names
    assert "hull_overlay.py" not in names
