from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..config import ScenarioConfig, load_config
from ..config.schema import OutputConfig
from ..core.pointcloud import EchoTable
from ..core.simulation import Simulation, SimulationResult
from ..runtime.builders import build_scene, build_simulation_config, build_writer
from ..core.utils import get_logger
from ..sensors.transducer import Transducer

_log = get_logger()

_OUTPUT_EXTENSIONS = {".npz", ".las", ".laz"}


@dataclass(frozen=True)
class SimulationRunResult:
    """Summary of a ping simulation driven by a configuration file."""

    stats: Dict[str, int]
    output_path: Optional[Path]
    config: ScenarioConfig
    transducers: List[Transducer]
    result: SimulationResult


def write_outputs(writer, result: SimulationResult, transducers: List[Transducer], cfg) -> None:
    """Stream hits and echo records into ``writer`` and close it."""
    try:
        writer.write_batch(result.hit_batch(cfg))
        writer.write_echoes(EchoTable.from_transducers(transducers))
    finally:
        close = getattr(writer, "close", None)
        if callable(close):
            close()


def simulate_from_config(
    config: Union[str, Path, ScenarioConfig],
    *,
    output: Optional[Path] = None,
    mode: Optional[str] = None,
) -> SimulationRunResult:
    """Run a ping scenario described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~sonarping.config.schema.ScenarioConfig`.
    output:
        Optional override for the output file. The extension drives the
        format (``.npz``, ``.las`` or ``.laz``).
    mode:
        Optional override for the collision mode (``first`` or ``nearest``).

    Returns
    -------
    SimulationRunResult
        Run statistics (rays, hits, echoes), the resolved output path (None
        when nothing was written), the resolved configuration, and the
        transducers with their accumulated echoes.
    """

    cfg = load_config(config) if not isinstance(config, ScenarioConfig) else config.model_copy(deep=True)

    if mode:
        if mode not in ("first", "nearest"):
            raise ValueError(f"Unknown collision mode '{mode}'")
        cfg.simulation.collision_mode = mode  # type: ignore[assignment]

    if output is not None:
        out_path = Path(output).resolve()
        ext = out_path.suffix.lower()
        if ext not in _OUTPUT_EXTENSIONS:
            raise ValueError(f"Unsupported output extension '{ext}'")
        cfg.output = OutputConfig(path=out_path, format=ext.lstrip("."))

    scene = build_scene(cfg)
    sim_cfg = build_simulation_config(cfg)
    result = Simulation(scene, cfg=sim_cfg).run()

    out_path = None
    writer = build_writer(cfg)
    if writer is not None:
        target = Path(cfg.output.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        write_outputs(writer, result, scene.transducers, sim_cfg)
        if target.exists():
            out_path = target
        else:
            _log.warning("Nothing to write: %s not created (no hits)", target)

    return SimulationRunResult(
        stats=result.stats(),
        output_path=out_path,
        config=cfg,
        transducers=scene.transducers,
        result=result,
    )
