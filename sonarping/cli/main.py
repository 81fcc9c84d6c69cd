from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
import yaml

from ..core.mesh import Mesh
from ..core.scene import Scene
from ..core.simulation import Simulation, SimulationConfig
from ..core.exporter import LasWriter, NpzWriter
from ..core.vector import Vec3
from ..examples.synthetic import PRESETS, generate_triangles, triangles_to_lists
from ..sdk.run import simulate_from_config, write_outputs
from ..sensors.transducer import Transducer

app = typer.Typer(help="Sonar ping simulation utilities")
scene_app = typer.Typer(help="Synthetic scene helpers")
app.add_typer(scene_app, name="scene")

_MODES = ("first", "nearest")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("sonarping").setLevel(numeric)


def _check_mode(mode: Optional[str]) -> None:
    if mode is not None and mode not in _MODES:
        raise typer.BadParameter(f"mode must be one of {list(_MODES)}.", param_hint="--mode")


def _echo_report(transducers: List[Transducer]) -> None:
    for idx, transducer in enumerate(transducers):
        label = transducer.name or f"transducer-{idx}"
        typer.echo(f"{label}: {len(transducer.echoes)} echoes")
        for echo in transducer.echoes:
            typer.echo(f"  t={echo.time:.6f} s  magnitude={echo.magnitude:.6f}")


def _execute_run(config: Path, output: Optional[Path], mode: Optional[str], log_level: str) -> None:
    _configure_logging(log_level)
    _check_mode(mode)
    try:
        result = simulate_from_config(config, output=output, mode=mode)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _echo_report(result.transducers)
    stats = result.stats
    suffix = f" → {result.output_path}" if result.output_path is not None else ""
    typer.echo(f"Completed {stats['echoes']} echoes from {stats['hits']} hits of {stats['rays']} rays{suffix}")


@app.command("run")
def run(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML scenario file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override output path (extension sets format)."),
    mode: Optional[str] = typer.Option(None, "--mode", help="Collision mode: first or nearest."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Run a ping scenario specified by a YAML config."""

    _execute_run(config, output, mode, log_level)


@app.command("simulate")
def simulate(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML scenario file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override output path (extension sets format)."),
    mode: Optional[str] = typer.Option(None, "--mode", help="Collision mode: first or nearest."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Alias for `run`"""

    _execute_run(config, output, mode, log_level)


@app.command("ping")
def ping(
    preset: str = typer.Option("reference", "--preset", help=f"Synthetic scene preset ({', '.join(PRESETS)})."),
    size: float = typer.Option(20.0, "--size", help="Scene extent in metres."),
    distance: float = typer.Option(10.0, "--distance", help="Distance from the origin to the wall / seabed."),
    divisions: int = typer.Option(2, "--divisions", help="Grid divisions per side."),
    point: Tuple[float, float, float] = typer.Option((0.0, 0.0, 0.0), "--point", help="Transducer position x y z."),
    direction: Tuple[float, float, float] = typer.Option((1.0, 0.0, 0.0), "--direction", help="Transducer direction x y z."),
    mode: str = typer.Option("first", "--mode", help="Collision mode: first or nearest."),
    speed_of_sound: float = typer.Option(1500.0, "--speed-of-sound", help="Speed of sound in m/s."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Optional output path (.npz/.las/.laz)."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Quick single-transducer ping against a synthetic scene."""

    _check_mode(mode)
    if speed_of_sound <= 0.0:
        raise typer.BadParameter("speed_of_sound must be positive.", param_hint="--speed-of-sound")
    _configure_logging(log_level)

    try:
        triangles = generate_triangles(preset, size=size, distance=distance, divisions=divisions)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--preset") from exc

    scene = Scene(
        mesh=Mesh(triangles),
        transducers=[Transducer(point=Vec3.of(point), direction=Vec3.of(direction), name="ping")],
    )
    sim_cfg = SimulationConfig(speed_of_sound=speed_of_sound, collision_mode=mode)  # type: ignore[arg-type]
    result = Simulation(scene, cfg=sim_cfg).run()

    if output is not None:
        output = output.resolve()
        fmt = output.suffix.lower()
        if fmt == ".npz":
            writer = NpzWriter(str(output))
        elif fmt in (".las", ".laz"):
            writer = LasWriter(str(output), compress=fmt == ".laz")
        else:
            raise typer.BadParameter("Output must end with .npz, .las or .laz", param_hint="--output")
        write_outputs(writer, result, scene.transducers, sim_cfg)

    _echo_report(scene.transducers)
    if not result.hits:
        typer.echo("No collision.")


@scene_app.command("generate")
def scene_generate(
    output: Path = typer.Argument(..., help="Output scenario path (.yaml)."),
    preset: str = typer.Option("demo", "--preset", help=f"Synthetic scene preset ({', '.join(PRESETS)})."),
    size: float = typer.Option(20.0, "--size", help="Scene extent in metres."),
    distance: float = typer.Option(10.0, "--distance", help="Distance from the origin to the wall / seabed."),
    divisions: int = typer.Option(2, "--divisions", help="Grid divisions per side."),
) -> None:
    """Write a runnable scenario with the preset's triangles inlined."""

    try:
        triangles = generate_triangles(preset, size=size, distance=distance, divisions=divisions)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--preset") from exc

    scenario = {
        "mesh": {"triangles": triangles_to_lists(triangles)},
        "transducers": [
            {"kind": "single", "point": [0.0, 0.0, 0.0], "direction": [1.0, 0.0, 0.0], "name": "forward"},
            {"kind": "single", "point": [0.0, 0.0, 0.0], "direction": [0.0, 0.0, -1.0], "name": "down"},
        ],
        "simulation": {"collision_mode": "first"},
    }
    out = output.resolve()
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        yaml.safe_dump(scenario, f, sort_keys=False)
    typer.echo(f"Wrote {len(triangles)}-triangle scenario to {out}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
