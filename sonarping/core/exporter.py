from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, List
import numpy as np
import pathlib
import warnings

import laspy  # type: ignore
from .pointcloud import PointBatch, EchoTable
from .utils import get_logger

_log = get_logger()

_LAS_EXTRAS = (
    ("range_m", "Range", "float32"),
    ("emitter_id", "emitter_id", "uint16"),
    ("triangle_id", "triangle_id", "uint32"),
)


@dataclass
class LasWriter:
    """Streaming LAS/LAZ writer for hit points using laspy (v2+).

    The header is created lazily on the first batch so the ExtraBytes
    dimensions match the attributes actually present. Echo records have no
    LAS representation and are dropped.
    """
    path: str
    point_format: int = 6
    compress: bool = False
    scale: tuple[float, float, float] = (1e-3, 1e-3, 1e-3)
    offset: Optional[tuple[float, float, float]] = None

    def __post_init__(self) -> None:
        self._fh: Optional[laspy.LasWriter] = None  # type: ignore
        self._header: Optional[laspy.LasHeader] = None  # type: ignore
        self._defined_extras: Dict[str, str] = {}

    # -- public API --
    def write_batch(self, batch: PointBatch) -> None:
        if len(batch.xyz) == 0:
            return
        if self._fh is None:
            self._init_header_from_batch(batch)
        assert self._fh is not None and self._header is not None
        self._fh.write_points(self._point_record_from_batch(batch, self._header))

    def write_echoes(self, echoes: EchoTable) -> None:
        _log.debug("LAS output carries hit points only; %d echo records not written.", len(echoes))

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    # -- internals --
    def _init_header_from_batch(self, batch: PointBatch) -> None:
        hdr = laspy.LasHeader(point_format=laspy.PointFormat(self.point_format), version="1.4")
        hdr.scales = self.scale
        if self.offset is None:
            mn = np.min(batch.xyz, axis=0)
            hdr.offsets = (float(mn[0]), float(mn[1]), float(mn[2]))
        else:
            hdr.offsets = self.offset

        for attr, dim, dtype in _LAS_EXTRAS:
            if attr in batch.attrs:
                hdr.add_extra_dim(laspy.ExtraBytesParams(name=dim, type=dtype))
                self._defined_extras[attr] = dim

        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = laspy.open(path, mode="w", header=hdr, do_compress=self.compress)
        self._header = hdr
        _log.info("Opened %s (PF=%d, compress=%s)", path.name, self.point_format, self.compress)

    def _point_record_from_batch(self, batch: PointBatch, header: "laspy.LasHeader") -> "laspy.ScaleAwarePointRecord":
        n = len(batch.xyz)
        pts = laspy.ScaleAwarePointRecord.zeros(n, header=header)
        pts.x = batch.xyz[:, 0]
        pts.y = batch.xyz[:, 1]
        pts.z = batch.xyz[:, 2]

        if "intensity01" in batch.attrs:
            v = np.clip(batch.attrs["intensity01"].astype(np.float64), 0.0, 1.0)
            pts.intensity = (v * 65535.0 + 0.5).astype(np.uint16)

        for attr, dim, dtype in _LAS_EXTRAS:
            if attr not in batch.attrs:
                continue
            if attr not in self._defined_extras:
                warnings.warn(f"Extra dimension '{dim}' was not declared in header; skipping.")
                continue
            pts[dim] = batch.attrs[attr].astype(dtype, copy=False)
        return pts


class NpzWriter:
    """Buffers hits and echoes, written once as a compressed ``.npz`` on close."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._batches: List[PointBatch] = []
        self._echoes: List[EchoTable] = []

    def write_batch(self, batch: PointBatch) -> None:
        self._batches.append(batch)

    def write_echoes(self, echoes: EchoTable) -> None:
        self._echoes.append(echoes)

    def close(self) -> None:
        if not self._batches and not self._echoes:
            return
        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)

        out: Dict[str, np.ndarray] = {}
        if self._batches:
            out["xyz"] = np.vstack([b.xyz for b in self._batches])
        else:
            out["xyz"] = np.zeros((0, 3), dtype=np.float32)
        keys = sorted({k for b in self._batches for k in b.attrs})
        for k in keys:
            dt = next(b.attrs[k].dtype for b in self._batches if k in b.attrs)
            vals = [
                b.attrs[k].astype(dt, copy=False) if k in b.attrs else np.zeros((len(b.xyz),), dtype=dt)
                for b in self._batches
            ]
            out[k] = np.concatenate(vals, axis=0)

        if self._echoes:
            out["echo_receiver_id"] = np.concatenate([e.receiver_id for e in self._echoes])
            out["echo_time_s"] = np.concatenate([e.time_s for e in self._echoes])
            out["echo_magnitude"] = np.concatenate([e.magnitude for e in self._echoes])
        else:
            out["echo_receiver_id"] = np.zeros((0,), dtype=np.uint32)
            out["echo_time_s"] = np.zeros((0,), dtype=np.float64)
            out["echo_magnitude"] = np.zeros((0,), dtype=np.float64)

        np.savez_compressed(path, **out)
        self._batches.clear()
        self._echoes.clear()
