#!/usr/bin/env python3
"""
Tests for FitSession: at most one active fit, wait and cancel policies.
"""

import threading
import time

import numpy as np
import pytest

from damping_analysis.fitting import FitSession, OptimizerSetting, evaluate_modes
from damping_analysis.fitting import session as session_module
from damping_analysis.utils.errors import InvalidInputError


@pytest.fixture
def samples():
    omega = np.logspace(-1, 3, 30)
    zeta, _ = evaluate_modes('zero_day', [[1.0, 0.04], [100.0, 0.02]], omega)
    return np.vstack([omega, zeta])


def test_runs_never_overlap(monkeypatch, samples):
    """Concurrent submissions are serialised."""
    active = []
    peak = []
    lock = threading.Lock()
    real_fit = session_module.fit_damping_curve

    def tracking_fit(*args, **kwargs):
        with lock:
            active.append(1)
            peak.append(len(active))
        time.sleep(0.05)
        try:
            return real_fit(*args, **kwargs)
        finally:
            with lock:
                active.pop()

    monkeypatch.setattr(session_module, 'fit_damping_curve', tracking_fit)

    setting = OptimizerSetting(max_iter=30)
    with FitSession(on_busy='wait') as session:
        futures = []
        threads = [
            threading.Thread(target=lambda seed=seed: futures.append(
                session.submit(samples, 'zero_day', 2, setting=setting, rng=seed)))
            for seed in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        results = [f.result(timeout=60) for f in futures]

    assert len(results) == 4
    assert max(peak) == 1, "Two fits were active at the same time"
    assert not any(r.cancelled for r in results)


def test_wait_policy_lets_previous_fit_finish(samples):
    setting = OptimizerSetting(max_iter=200)
    with FitSession(on_busy='wait') as session:
        first = session.submit(samples, 'zero_day', 2, setting=setting, rng=0)
        second = session.submit(samples, 'zero_day', 2, setting=setting, rng=1)
        assert first.done(), "Submit must return only after the previous fit finished"
        assert not first.result().cancelled
        assert not second.result(timeout=60).cancelled


def test_cancel_policy_stops_previous_fit(samples):
    endless = OptimizerSetting(tolerance=0.0, max_iter=10_000_000)
    with FitSession(on_busy='cancel') as session:
        first = session.submit(samples, 'zero_day', 2, optimizer='gradient_descent',
                               setting=endless, rng=0)
        time.sleep(0.1)
        second = session.submit(samples, 'zero_day', 1, setting=OptimizerSetting(max_iter=50), rng=1)

        first_result = first.result(timeout=60)
        second_result = second.result(timeout=60)

    assert first_result.cancelled
    assert np.all(np.isfinite(first_result.params))
    assert not second_result.cancelled


def test_explicit_cancel(samples):
    endless = OptimizerSetting(tolerance=0.0, max_iter=10_000_000)
    session = FitSession()
    try:
        future = session.submit(samples, 'unicorn', 1, optimizer='gradient_descent',
                                setting=endless, rng=0)
        time.sleep(0.1)
        assert session.running
        session.cancel()
        assert future.result(timeout=60).cancelled
        assert not session.running
    finally:
        session.shutdown()


def test_cancel_not_blocked_by_waiting_submit(samples):
    """cancel() and running stay responsive while a submitter waits."""
    endless = OptimizerSetting(tolerance=0.0, max_iter=10_000_000)
    session = FitSession(on_busy='wait')
    try:
        first = session.submit(samples, 'zero_day', 2, optimizer='gradient_descent',
                               setting=endless, rng=0)
        time.sleep(0.1)

        queued = []
        waiter = threading.Thread(target=lambda: queued.append(
            session.submit(samples, 'zero_day', 1, setting=OptimizerSetting(max_iter=20), rng=1)))
        waiter.start()
        time.sleep(0.1)
        assert waiter.is_alive(), "Second submit should wait for the endless fit"

        done = threading.Event()

        def cancel_and_flag():
            assert session.running
            session.cancel()
            done.set()

        canceller = threading.Thread(target=cancel_and_flag)
        canceller.start()
        assert done.wait(3.0), "cancel() blocked behind a waiting submit()"
        canceller.join()

        assert first.result(timeout=60).cancelled
        waiter.join(timeout=60)
        assert not queued[0].result(timeout=60).cancelled
    finally:
        session.shutdown()


def test_cancel_when_idle_is_noop():
    session = FitSession()
    session.cancel()
    assert not session.running
    session.shutdown()


def test_fit_errors_surface_through_future(samples):
    with FitSession() as session:
        future = session.submit(samples, 'zero_day', 1, optimizer='bogus')
        with pytest.raises(InvalidInputError):
            future.result(timeout=60)
        # A failed fit does not block the next one
        ok = session.submit(samples, 'zero_day', 1, setting=OptimizerSetting(max_iter=20), rng=0)
        assert ok.result(timeout=60).params.shape == (1, 2)


def test_invalid_policy_rejected():
    with pytest.raises(InvalidInputError):
        FitSession(on_busy='queue')
