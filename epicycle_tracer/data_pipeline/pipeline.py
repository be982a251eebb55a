"""End-to-end pipeline: binary mask → ordered path + epicycles.

Stages (single forward pass, no retries, no partial results):
    thin       SkeletonThinner            mask → 1-px skeleton
    extract    geometry.centered_points   skeleton → points (raster order)
    order      PathOrderingStrategy       points → ordered path
    decompose  SpectralDecomposer         ordered path → epicycles

Any failure aborts the run. EpicycleError subclasses get their `stage`
attribute set to the failing stage; every failure is logged with the stage
name in the log context before it propagates.

The returned EpicycleTrace is immutable and can be shared read-only by any
number of consumers (renderers, exporters).

Usage:
    cfg = validators.load_epicycle_tracer_config("configs/epicycle_tracer_v1.yaml")
    trace = EpicyclePipeline.from_config(cfg).run(mask)
    save_trace(trace, "outputs/shape_0_epicycles.yaml")
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..utils import fs, geometry, hashing, logging_config, profiler, validators
from .path_order import PathOrderingStrategy, make_orderer
from .skeleton import SkeletonThinner
from .spectral import (
    EmptyInputError,
    Epicycle,
    EpicycleError,
    SpectralDecomposer,
    reconstruct_path,
)

logger = logging.getLogger(__name__)


@contextmanager
def _stage(name: str):
    """Tag log records and EpicycleErrors raised inside with the stage name."""
    logging_config.push_context(stage=name)
    try:
        with profiler.timer(name, sink=profiler.log_sink(logger)):
            yield
    except EpicycleError as e:
        if e.stage is None:
            e.stage = name
        logger.error(f"Stage '{name}' failed: {e.args[0]}")
        raise
    except Exception as e:
        logger.error(f"Stage '{name}' failed with {type(e).__name__}: {e}")
        raise
    finally:
        logging_config.pop_context(keys=["stage"])


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=np.float64, copy=True)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class EpicycleTrace:
    """Pipeline result.

    Attributes
    ----------
    points : np.ndarray
        Ordered path, (N, 2) float64, read-only, image-centered
    epicycles : Tuple[Epicycle, ...]
        Ranked epicycles, largest amplitude first
    image_size : Tuple[int, int]
        Mask (width, height)
    mask_sha256 : Optional[str]
        Hash of the input mask, for provenance
    source_sha256 : Optional[str]
        Hash of the image file the mask was detected from, if any
    """

    points: np.ndarray
    epicycles: Tuple[Epicycle, ...]
    image_size: Tuple[int, int]
    mask_sha256: Optional[str] = None
    source_sha256: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'points', _readonly(geometry.as_points(self.points)))
        object.__setattr__(self, 'epicycles', tuple(self.epicycles))

    @property
    def n_points(self) -> int:
        return len(self.points)

    def reconstruct(self, samples: int) -> np.ndarray:
        """Closed path traced by the epicycles, (samples, 2)."""
        return reconstruct_path(self.epicycles, samples)

    def to_dict(self) -> dict:
        """Serialize to the epicycles.v1 layout (plain Python types)."""
        return {
            'schema': 'epicycles.v1',
            'image_size': [int(self.image_size[0]), int(self.image_size[1])],
            'n_points': self.n_points,
            'mask_sha256': self.mask_sha256,
            'source_sha256': self.source_sha256,
            'epicycles': [e.to_dict() for e in self.epicycles],
            'points': [[float(x), float(y)] for x, y in self.points],
        }

    @classmethod
    def from_file_model(cls, data: validators.EpicyclesFileV1) -> 'EpicycleTrace':
        return cls(
            points=np.array(data.points, dtype=np.float64).reshape(-1, 2),
            epicycles=tuple(
                Epicycle(e.frequency, e.amplitude, e.phase) for e in data.epicycles
            ),
            image_size=tuple(data.image_size),
            mask_sha256=data.mask_sha256,
            source_sha256=data.source_sha256,
        )


class EpicyclePipeline:
    """Mask → EpicycleTrace with injectable stages.

    Parameters
    ----------
    thinner : SkeletonThinner
        Skeleton extraction
    orderer : PathOrderingStrategy
        Point ordering strategy
    decomposer : SpectralDecomposer
        Epicycle selection
    """

    def __init__(
        self,
        thinner: SkeletonThinner,
        orderer: PathOrderingStrategy,
        decomposer: SpectralDecomposer
    ):
        self.thinner = thinner
        self.orderer = orderer
        self.decomposer = decomposer

    @classmethod
    def from_config(cls, cfg: Optional[validators.EpicycleTracerV1] = None) -> 'EpicyclePipeline':
        cfg = cfg or validators.EpicycleTracerV1()
        return cls(
            thinner=SkeletonThinner.from_config(cfg.thinning),
            orderer=make_orderer(cfg.ordering),
            decomposer=SpectralDecomposer.from_config(cfg.spectral),
        )

    def run(self, mask: np.ndarray) -> EpicycleTrace:
        """Run every stage on a binary mask.

        Parameters
        ----------
        mask : np.ndarray
            Binary mask, shape (H, W)

        Returns
        -------
        EpicycleTrace
            Ordered path and ranked epicycles

        Raises
        ------
        EmptyInputError
            If the skeleton has no foreground pixels (stage 'extract')
        DegenerateSpectrumError
            If no epicycle passes the threshold (stage 'decompose')
        ValueError
            If the mask is not 2-D (stage 'thin')
        """
        mask = np.asarray(mask)

        with _stage("thin"):
            skeleton = self.thinner.thin(mask)

        with _stage("extract"):
            points = geometry.centered_points(skeleton)
            if len(points) == 0:
                raise EmptyInputError("Skeleton extraction yielded no foreground pixels")
            logger.info(f"Extracted {len(points)} skeleton points")

        with _stage("order"):
            path = self.orderer.order(points)
            jumps = geometry.find_jumps(path)
            logger.info(
                f"Ordered path: length {geometry.polyline_length(path, closed=True):.1f} px, "
                f"{len(jumps)} jumps between disconnected segments"
            )

        with _stage("decompose"):
            epicycles = self.decomposer.decompose(path)

        H, W = mask.shape
        return EpicycleTrace(
            points=path,
            epicycles=epicycles,
            image_size=(W, H),
            mask_sha256=hashing.sha256_array(mask),
        )


def run_pipeline(
    mask: np.ndarray,
    cfg: Optional[validators.EpicycleTracerV1] = None
) -> EpicycleTrace:
    """EpicyclePipeline.from_config(cfg).run(mask)."""
    return EpicyclePipeline.from_config(cfg).run(mask)


def save_trace(trace: EpicycleTrace, path: Union[str, Path]) -> None:
    """Write an epicycles.v1 YAML file atomically."""
    fs.atomic_yaml_dump(trace.to_dict(), path)
    logger.info(f"Saved {len(trace.epicycles)} epicycles to {path}")


def load_trace(path: Union[str, Path]) -> EpicycleTrace:
    """Read and validate an epicycles.v1 YAML file."""
    return EpicycleTrace.from_file_model(validators.load_epicycles(path))
