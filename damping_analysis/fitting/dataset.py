"""
Target damping curve samples.

A SampleDataset holds the (frequency, damping ratio) pairs a fit is run
against, sorted by frequency, together with the cached range scalars the
mode reparameterizations use to bound their parameters.
"""

import logging
from typing import Union

import numpy as np
from numpy.typing import NDArray, ArrayLike

from .config import OMEGA_MARGIN_DECADES, MIN_OMEGA_RANGE
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


class SampleDataset:
    """
    Sorted (frequency, damping ratio) samples with cached range scalars.

    Parameters
    ----------
    samples : array_like, shape (2, N)
        Row 0 are angular frequencies (strictly positive), row 1 are
        damping ratios.

    Attributes
    ----------
    min_omega, max_omega : float
        log10 of the smallest/largest frequency widened by 0.1 decade
    min_zeta, max_zeta : float
        Smallest/largest damping ratio
    range_omega : float
        max_omega - min_omega (never zero)

    Raises
    ------
    InvalidInputError
        If the array is not (2, N), is empty, contains non-finite values,
        a non-positive frequency or no positive damping ratio.
    """

    def __init__(self, samples: ArrayLike):
        data = np.asarray(samples, dtype=float)

        if data.ndim != 2 or data.shape[0] != 2:
            raise InvalidInputError(
                f"Samples must be a (2, N) array, got shape {data.shape}"
            )
        if data.shape[1] == 0:
            raise InvalidInputError("Sample set is empty")
        if not np.all(np.isfinite(data)):
            raise InvalidInputError("Samples contain non-finite values")
        if np.any(data[0] <= 0):
            raise InvalidInputError("Only positive frequencies are supported")
        if np.max(data[1]) <= 0:
            raise InvalidInputError("Damping curve has no positive damping ratio")

        order = np.argsort(data[0], kind='stable')
        self._data = data[:, order].copy()
        self._data.setflags(write=False)

        self.min_omega = float(np.log10(self._data[0, 0]) - OMEGA_MARGIN_DECADES)
        self.max_omega = float(np.log10(self._data[0, -1]) + OMEGA_MARGIN_DECADES)
        self.min_zeta = float(np.min(self._data[1]))
        self.max_zeta = float(np.max(self._data[1]))
        self.range_omega = max(self.max_omega - self.min_omega, MIN_OMEGA_RANGE)

    @classmethod
    def from_points(cls, omega: ArrayLike, zeta: ArrayLike) -> 'SampleDataset':
        """Build a dataset from separate frequency and damping arrays."""
        omega = np.atleast_1d(np.asarray(omega, dtype=float))
        zeta = np.atleast_1d(np.asarray(zeta, dtype=float))
        if omega.shape != zeta.shape:
            raise InvalidInputError(
                f"Frequency and damping arrays differ in length "
                f"({omega.size} vs {zeta.size})"
            )
        return cls(np.vstack([omega, zeta]))

    @property
    def omega(self) -> NDArray[np.float64]:
        return self._data[0].copy()

    @property
    def zeta(self) -> NDArray[np.float64]:
        return self._data[1].copy()

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    def __len__(self) -> int:
        return self.n_samples

    def as_array(self) -> NDArray[np.float64]:
        """Return a writable (2, N) copy of the samples."""
        return self._data.copy()

    def resample(self, n_samples: int, log_scale: bool = True) -> 'SampleDataset':
        """
        Interpolate the curve onto a log-spaced frequency grid.

        The grid spans exactly [min w, max w] of the current samples.
        Damping ratios are linearly interpolated against log10(w) when
        ``log_scale`` is True, otherwise against w itself.

        Parameters
        ----------
        n_samples : int
            Number of grid points (>= 1)
        log_scale : bool, optional
            Interpolate in log-frequency (default: True)

        Returns
        -------
        dataset : SampleDataset
            New dataset; a single-sample dataset is returned unchanged.
        """
        if n_samples < 1:
            raise InvalidInputError(f"Number of samples must be >= 1, got {n_samples}")

        if self.n_samples == 1:
            return self

        omega, zeta = self._data
        lower, upper = np.log10(omega[0]), np.log10(omega[-1])
        grid = np.logspace(lower, upper, n_samples)

        if log_scale:
            zeta_grid = np.interp(np.log10(grid), np.log10(omega), zeta)
        else:
            zeta_grid = np.interp(grid, omega, zeta)

        logger.debug(
            f"Resampled {self.n_samples} points onto {n_samples} "
            f"({'log' if log_scale else 'linear'} interpolation)"
        )
        return SampleDataset(np.vstack([grid, zeta_grid]))

    def __repr__(self) -> str:
        return (
            f"SampleDataset(n_samples={self.n_samples}, "
            f"omega=[{10 ** (self.min_omega + OMEGA_MARGIN_DECADES):.3g}, "
            f"{10 ** (self.max_omega - OMEGA_MARGIN_DECADES):.3g}], "
            f"zeta=[{self.min_zeta:.3g}, {self.max_zeta:.3g}])"
        )


def as_dataset(samples: Union['SampleDataset', ArrayLike]) -> SampleDataset:
    """Return ``samples`` unchanged if already a dataset, else wrap it."""
    if isinstance(samples, SampleDataset):
        return samples
    return SampleDataset(samples)


__all__ = [
    'SampleDataset',
    'as_dataset',
]
