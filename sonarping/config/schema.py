from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.utils import get_logger

_log = get_logger()

Vec3Tuple = tuple[float, float, float]


class _Section(BaseModel):
    # Unknown keys are kept long enough to be reported, then ignored.
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def _warn_unknown(self) -> "_Section":
        for key in self.model_extra or {}:
            _log.warning("Ignoring unknown setting '%s' in %s", key, type(self).__name__)
        return self


class PresetConfig(_Section):
    preset: Literal["reference", "wall", "seabed", "demo"]
    size: float = Field(20.0, gt=0.0)
    distance: float = 10.0
    divisions: int = Field(2, gt=0)


class MeshConfig(_Section):
    triangles: List[tuple[Vec3Tuple, Vec3Tuple, Vec3Tuple]] = Field(default_factory=list)
    presets: List[PresetConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _non_empty(self) -> "MeshConfig":
        if not self.triangles and not self.presets:
            raise ValueError("mesh needs at least one triangle or preset")
        return self


class SingleTransducerConfig(_Section):
    kind: Literal["single"] = "single"
    point: Vec3Tuple = (0.0, 0.0, 0.0)
    direction: Vec3Tuple
    name: Optional[str] = None


class LinearArrayConfig(_Section):
    kind: Literal["linear_array"]
    origin: Vec3Tuple = (0.0, 0.0, 0.0)
    axis: Vec3Tuple = (0.0, 1.0, 0.0)
    spacing_m: float = Field(gt=0.0)
    count: int = Field(gt=0)
    direction: Vec3Tuple
    name: Optional[str] = None

    @model_validator(mode="after")
    def _axis_non_zero(self) -> "LinearArrayConfig":
        if self.count > 1 and not any(self.axis):
            raise ValueError("linear_array axis must be non-zero")
        return self


TransducerConfig = Annotated[
    Union[SingleTransducerConfig, LinearArrayConfig],
    Field(discriminator="kind"),
]


class SimulationConfigModel(_Section):
    speed_of_sound: float = Field(1500.0, gt=0.0)
    attenuation_db_per_m: float = 0.1
    source_intensity: float = 1.0
    epsilon: float = Field(1e-6, ge=0.0)
    collision_mode: Literal["first", "nearest"] = "first"
    allow_behind_origin: bool = True


class OutputConfig(_Section):
    path: Path
    format: Literal["npz", "las", "laz"] = "npz"


class ScenarioConfig(_Section):
    mesh: MeshConfig
    transducers: List[TransducerConfig] = Field(min_length=1)
    simulation: SimulationConfigModel = SimulationConfigModel()
    output: Optional[OutputConfig] = None


def load_config(path: str | Path) -> ScenarioConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = ScenarioConfig.model_validate(data)
    if cfg.output is not None and not cfg.output.path.is_absolute():
        cfg.output.path = (path.parent / cfg.output.path).resolve()
    return cfg
