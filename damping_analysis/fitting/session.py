"""
Background fitting session with at most one active run.

FitSession submits fits to a single-worker thread pool. Before a new fit
starts, the previous one is either awaited (on_busy='wait') or cancelled
through its token and then awaited (on_busy='cancel'), so two fits never
run at the same time and never share an objective.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .dispatch import FitResult, fit_damping_curve
from .optimizers import CancellationToken
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

VALID_ON_BUSY = ('wait', 'cancel')


class FitSession:
    """
    Owner of the single active fitting run.

    Parameters
    ----------
    on_busy : str, optional
        What to do with an active run when a new fit is submitted:
        'wait' (default) or 'cancel'

    Examples
    --------
    >>> with FitSession(on_busy='cancel') as session:
    ...     future = session.submit(samples, 'unicorn', 2, optimizer='lbfgs')
    ...     result = future.result()
    """

    def __init__(self, on_busy: str = 'wait'):
        if on_busy not in VALID_ON_BUSY:
            raise InvalidInputError(f"on_busy must be one of {VALID_ON_BUSY}, got '{on_busy}'")
        self.on_busy = on_busy
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='damping-fit')
        # _submit_lock serialises submitters; _lock only guards _future and _token
        self._submit_lock = threading.Lock()
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._token: Optional[CancellationToken] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    def submit(self, samples, family='zero_day', num_modes: int = 1,
               optimizer: str = 'lbfgs', on_busy: Optional[str] = None,
               **kwargs) -> 'Future[FitResult]':
        """
        Start a fit in the background.

        Keyword arguments are passed to fit_damping_curve (setting, rng,
        resample, log_scale). The cancel token is owned by the session.

        Returns
        -------
        future : concurrent.futures.Future
            Resolves to the FitResult (or raises the fit's exception)
        """
        policy = self.on_busy if on_busy is None else on_busy
        if policy not in VALID_ON_BUSY:
            raise InvalidInputError(f"on_busy must be one of {VALID_ON_BUSY}, got '{policy}'")

        with self._submit_lock:
            with self._lock:
                previous, previous_token = self._future, self._token
            if previous is not None and not previous.done():
                if policy == 'cancel':
                    logger.info("Cancelling active fit")
                    previous_token.cancel()
                else:
                    logger.info("Waiting for active fit to finish")
                _wait_quietly(previous)

            token = CancellationToken()
            with self._lock:
                self._token = token
                self._future = self._executor.submit(
                    fit_damping_curve, samples, family, num_modes, optimizer,
                    cancel_token=token, **kwargs
                )
                return self._future

    def cancel(self) -> None:
        """Request cancellation of the active fit (no-op when idle)."""
        with self._lock:
            if self._token is not None and self._future is not None and not self._future.done():
                self._token.cancel()

    def shutdown(self, cancel: bool = True) -> None:
        if cancel:
            self.cancel()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> 'FitSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(cancel=exc_type is not None)


def _wait_quietly(future: Future) -> None:
    """Block until ``future`` is done without re-raising its exception."""
    future.exception()


__all__ = ['FitSession']
