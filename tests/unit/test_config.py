from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sonarping.config import load_config
from sonarping.config.schema import LinearArrayConfig, ScenarioConfig
from sonarping.core.vector import Vec3
from sonarping.runtime.builders import (
    build_mesh, build_simulation_config, build_transducers, build_writer, linear_array,
)
from sonarping.core.exporter import LasWriter, NpzWriter


def _write(path: Path, data: dict) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return path


BASE = {
    "mesh": {"triangles": [[[10, -10, 0], [10, 10, 0], [10, 0, -10]]]},
    "transducers": [{"kind": "single", "point": [0, 0, 0], "direction": [1, 0, 0]}],
}


def test_load_config_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path / "s.yaml", BASE))
    assert cfg.simulation.speed_of_sound == 1500.0
    assert cfg.simulation.epsilon == 1e-6
    assert cfg.simulation.collision_mode == "first"
    assert cfg.simulation.allow_behind_origin is True
    assert cfg.output is None
    assert build_writer(cfg) is None


def test_output_path_resolves_against_config_dir(tmp_path: Path) -> None:
    data = dict(BASE, output={"path": "out/echoes.npz"})
    cfg = load_config(_write(tmp_path / "s.yaml", data))
    assert cfg.output is not None
    assert cfg.output.path == (tmp_path / "out" / "echoes.npz").resolve()
    assert isinstance(build_writer(cfg), NpzWriter)

    cfg.output.format = "laz"
    writer = build_writer(cfg)
    assert isinstance(writer, LasWriter) and writer.compress


def test_root_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_validation_errors() -> None:
    with pytest.raises(ValidationError):
        ScenarioConfig.model_validate({"mesh": {}, "transducers": BASE["transducers"]})
    with pytest.raises(ValidationError):
        ScenarioConfig.model_validate({"mesh": BASE["mesh"], "transducers": []})
    with pytest.raises(ValidationError):
        ScenarioConfig.model_validate(dict(BASE, simulation={"collision_mode": "closest"}))
    with pytest.raises(ValidationError):
        ScenarioConfig.model_validate(dict(BASE, simulation={"speed_of_sound": -1.0}))
    with pytest.raises(ValidationError):
        LinearArrayConfig.model_validate(
            {"kind": "linear_array", "axis": [0, 0, 0], "spacing_m": 1.0, "count": 2, "direction": [1, 0, 0]}
        )


def test_builders_assemble_mesh_and_array() -> None:
    cfg = ScenarioConfig.model_validate({
        "mesh": {
            "triangles": BASE["mesh"]["triangles"],
            "presets": [{"preset": "wall", "size": 4.0, "distance": 30.0, "divisions": 1}],
        },
        "transducers": [
            {"kind": "single", "point": [0, 0, 0], "direction": [1, 0, 0], "name": "bow"},
            {"kind": "linear_array", "origin": [0, 0, 0], "axis": [0, 2, 0],
             "spacing_m": 0.5, "count": 3, "direction": [0, 0, -1], "name": "keel"},
        ],
        "simulation": {"speed_of_sound": 1480.0, "collision_mode": "nearest", "allow_behind_origin": False},
    })
    mesh = build_mesh(cfg)
    assert len(mesh) == 3
    assert mesh.triangles[0].p1 == Vec3(10.0, -10.0, 0.0)

    transducers = build_transducers(cfg)
    assert [t.name for t in transducers] == ["bow", "keel-0", "keel-1", "keel-2"]
    assert [t.point.y for t in transducers[1:]] == [-0.5, 0.0, 0.5]
    assert all(t.direction == Vec3(0.0, 0.0, -1.0) for t in transducers[1:])

    sim = build_simulation_config(cfg)
    assert sim.speed_of_sound == 1480.0
    assert sim.collision_mode == "nearest"
    assert sim.allow_behind_origin is False


def test_linear_array_single_element_ignores_axis() -> None:
    elements = linear_array(Vec3(1.0, 2.0, 3.0), Vec3.zero(), 1.0, 1, Vec3(1.0, 0.0, 0.0))
    assert len(elements) == 1
    assert elements[0].point == Vec3(1.0, 2.0, 3.0)
    with pytest.raises(ValueError):
        linear_array(Vec3.zero(), Vec3(1.0, 0.0, 0.0), 1.0, 0, Vec3(1.0, 0.0, 0.0))


def test_unknown_settings_are_reported(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    data = dict(BASE, simulation={"collison_mode": "nearest"})
    with caplog.at_level("WARNING", logger="sonarping"):
        cfg = load_config(_write(tmp_path / "s.yaml", data))
    assert cfg.simulation.collision_mode == "first"
    messages = [r.getMessage() for r in caplog.records if r.levelname == "WARNING"]
    assert messages == ["Ignoring unknown setting 'collison_mode' in SimulationConfigModel"]


def test_known_settings_log_nothing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="sonarping"):
        load_config(_write(tmp_path / "s.yaml", BASE))
    assert [r for r in caplog.records if r.levelname == "WARNING"] == []
