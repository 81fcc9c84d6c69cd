from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np
from typing import Dict, Sequence

@dataclass
class PointBatch:
    """A batch of hit points with arbitrary per-point attributes."""
    xyz: np.ndarray                       # (N, 3)
    attrs: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.xyz = np.asarray(self.xyz, dtype=np.float32).reshape(-1, 3)
        n = len(self.xyz)
        for k, v in self.attrs.items():
            if v.ndim >= 1 and v.shape[0] != n:
                raise ValueError(f"Attribute '{k}' length {v.shape[0]} != {n}")


@dataclass
class EchoTable:
    """Flattened echo records of a transducer array, one row per echo."""
    receiver_id: np.ndarray               # (M,) index into the array
    time_s: np.ndarray                    # (M,)
    magnitude: np.ndarray                 # (M,)

    def __len__(self) -> int:
        return int(self.receiver_id.shape[0])

    @staticmethod
    def from_transducers(transducers: Sequence) -> "EchoTable":
        ids = [i for i, t in enumerate(transducers) for _ in t.echoes]
        times = [e.time for t in transducers for e in t.echoes]
        mags = [e.magnitude for t in transducers for e in t.echoes]
        return EchoTable(
            receiver_id=np.asarray(ids, dtype=np.uint32),
            time_s=np.asarray(times, dtype=np.float64),
            magnitude=np.asarray(mags, dtype=np.float64),
        )
