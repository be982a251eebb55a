"""Spectral decomposition: ordered path → ranked epicycles.

The ordered path is read as one period of a complex signal
z_j = x_j + i·y_j, j = 0..n-1, and transformed with a forward DFT:

    X_k = Σ_j z_j · e^{-2πi·jk/n}

Each bin becomes an epicycle:
    frequency = k          if k ≤ n/2
              = k - n      otherwise (negative = clockwise in math axes)
    amplitude = |X_k| / n
    phase     = arg(X_k), mapped into (-π, π]

Bins with amplitude ≤ min_amplitude are dropped, the rest are stably sorted
by amplitude (largest first, ties keep bin order) and truncated to max_terms.

Reconstruction:
    z(t) = Σ amplitude · e^{i(frequency·t + phase)},  t ∈ [0, 2π)
Sampling t_j = 2πj/n with every bin kept reproduces the input samples.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from ..utils import geometry, validators

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class EpicycleError(Exception):
    """Base class for pipeline failures.

    Attributes
    ----------
    stage : Optional[str]
        Pipeline stage that raised (set by the pipeline's stage guard)
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        msg = super().__str__()
        return f"[{self.stage}] {msg}" if self.stage else msg


class EmptyInputError(EpicycleError):
    """No points to transform (a length-zero DFT is undefined)."""

    pass


class DegenerateSpectrumError(EpicycleError):
    """Every bin fell at or below the amplitude threshold.

    Recoverable: the caller can retry with a lower min_amplitude
    (peak_amplitude tells how low it must go) or abort.
    """

    def __init__(
        self,
        message: str,
        peak_amplitude: float,
        min_amplitude: float,
        n_bins: int,
        stage: Optional[str] = None
    ):
        super().__init__(message, stage=stage)
        self.peak_amplitude = peak_amplitude
        self.min_amplitude = min_amplitude
        self.n_bins = n_bins


# ---------------------------------------------------------------------------
# Epicycle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Epicycle:
    """One rotating component amplitude · e^{i(frequency·t + phase)}.

    Parameters
    ----------
    frequency : int
        Signed number of turns per traversal of the path
    amplitude : float
        Circle radius (pixels), ≥ 0
    phase : float
        Angle at t = 0, radians in (-π, π]
    """

    frequency: int
    amplitude: float
    phase: float

    def position(self, t: float) -> complex:
        """Offset contributed by this circle at time t."""
        return self.amplitude * complex(
            math.cos(self.frequency * t + self.phase),
            math.sin(self.frequency * t + self.phase),
        )

    def to_dict(self) -> dict:
        return {
            'frequency': int(self.frequency),
            'amplitude': float(self.amplitude),
            'phase': float(self.phase),
        }


def signed_frequencies(n: int) -> np.ndarray:
    """Signed harmonic index of each DFT bin: k if k ≤ n/2 else k - n."""
    k = np.arange(n)
    return np.where(2 * k <= n, k, k - n)


def _wrap_phase(phase: np.ndarray) -> np.ndarray:
    """Map angles from [-π, π] into (-π, π]."""
    return np.where(phase <= -np.pi, phase + 2.0 * np.pi, phase)


class SpectralDecomposer:
    """Path → filtered, ranked, truncated epicycles.

    Parameters
    ----------
    min_amplitude : float
        Keep bins whose amplitude is strictly greater, default 0.001
    max_terms : int
        Maximum epicycles returned, default 500
    allow_empty : bool
        Return () instead of raising DegenerateSpectrumError, default False
    """

    def __init__(
        self,
        min_amplitude: float = 0.001,
        max_terms: int = 500,
        allow_empty: bool = False
    ):
        if min_amplitude < 0:
            raise ValueError(f"min_amplitude must be >= 0, got {min_amplitude}")
        if max_terms < 1:
            raise ValueError(f"max_terms must be >= 1, got {max_terms}")
        self.min_amplitude = float(min_amplitude)
        self.max_terms = int(max_terms)
        self.allow_empty = allow_empty

    @classmethod
    def from_config(cls, cfg: validators.SpectralConfig) -> 'SpectralDecomposer':
        return cls(
            min_amplitude=cfg.min_amplitude,
            max_terms=cfg.max_terms,
            allow_empty=cfg.allow_empty,
        )

    def spectrum(self, path: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Per-bin (frequency, amplitude, phase) in bin order, unfiltered.

        Parameters
        ----------
        path : np.ndarray
            Ordered path, shape (n, 2)

        Returns
        -------
        frequency : np.ndarray
            (n,) int
        amplitude : np.ndarray
            (n,) float64, |X_k| / n
        phase : np.ndarray
            (n,) float64 in (-π, π]

        Raises
        ------
        EmptyInputError
            If the path has no points
        """
        samples = geometry.to_complex(path)
        n = samples.size
        if n == 0:
            raise EmptyInputError("Cannot decompose an empty path (length-zero transform)")

        coeffs = np.fft.fft(samples)
        return signed_frequencies(n), np.abs(coeffs) / n, _wrap_phase(np.angle(coeffs))

    def decompose(self, path: np.ndarray) -> Tuple[Epicycle, ...]:
        """Ranked epicycles approximating the closed path.

        Parameters
        ----------
        path : np.ndarray
            Ordered path, shape (n, 2), n ≥ 1

        Returns
        -------
        Tuple[Epicycle, ...]
            At most max_terms epicycles, amplitude descending, each with
            amplitude > min_amplitude

        Raises
        ------
        EmptyInputError
            If the path has no points
        DegenerateSpectrumError
            If no bin passes the threshold and allow_empty is False
        """
        freq, amp, phase = self.spectrum(path)
        n = amp.size

        kept = np.nonzero(amp > self.min_amplitude)[0]
        if kept.size == 0:
            peak = float(amp.max())
            msg = (
                f"All {n} spectral bins are at or below min_amplitude="
                f"{self.min_amplitude:g} (peak amplitude {peak:g})"
            )
            if not self.allow_empty:
                raise DegenerateSpectrumError(msg, peak, self.min_amplitude, n)
            logger.warning(msg)
            return ()

        ranked = kept[np.argsort(-amp[kept], kind='stable')][:self.max_terms]
        epicycles = tuple(
            Epicycle(int(freq[k]), float(amp[k]), float(phase[k])) for k in ranked
        )

        logger.info(
            f"Kept {len(epicycles)} of {n} epicycles "
            f"({kept.size} above threshold, max_terms={self.max_terms})"
        )
        return epicycles


def decompose(
    path: np.ndarray,
    min_amplitude: float = 0.001,
    max_terms: int = 500
) -> Tuple[Epicycle, ...]:
    """Convenience wrapper around SpectralDecomposer.decompose()."""
    return SpectralDecomposer(min_amplitude, max_terms).decompose(path)


def reconstruct(epicycles: Sequence[Epicycle], t) -> np.ndarray:
    """Sum of epicycles at time(s) t.

    Parameters
    ----------
    epicycles : Sequence[Epicycle]
        Components to sum
    t : float or array-like
        Time parameter(s), one period is [0, 2π)

    Returns
    -------
    np.ndarray
        complex128 positions, same shape as t
    """
    t = np.asarray(t, dtype=np.float64)
    z = np.zeros(t.shape, dtype=np.complex128)
    for e in epicycles:
        z += e.amplitude * np.exp(1j * (e.frequency * t + e.phase))
    return z


def reconstruct_path(epicycles: Iterable[Epicycle], samples: int) -> np.ndarray:
    """Reconstructed closed path sampled at t_j = 2πj/samples.

    Returns
    -------
    np.ndarray
        (samples, 2) float64 points
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1, got {samples}")
    t = 2.0 * np.pi * np.arange(samples) / samples
    return geometry.from_complex(reconstruct(list(epicycles), t))
