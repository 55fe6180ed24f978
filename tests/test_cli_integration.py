#!/usr/bin/env python3
"""
Integration tests for CLI workflow.

Tests end-to-end CLI workflows including:
1. Synthetic curve generation and frequency filtering
2. Mode table parsing
3. Fitting through the handlers
4. The complete main() pipeline and its exit codes

These tests verify that the complete analysis pipeline works correctly
when invoked through the CLI interface.
"""

import argparse
import logging

import numpy as np
import pytest

from damping_analysis.cli import main
from damping_analysis.cli.data_handling import load_curve, filter_by_frequency
from damping_analysis.cli.handlers import run_fitting, run_order_rounding
from damping_analysis.cli.parser import parse_arguments
from damping_analysis.cli.utils import parse_mode_table, build_setting
from damping_analysis.utils.errors import InvalidInputError


def create_test_args(**kwargs) -> argparse.Namespace:
    """
    Create argparse.Namespace with default CLI arguments.

    Override defaults by passing keyword arguments.
    """
    args = parse_arguments(['--quiet', '--seed', '0', '--max-iter', '300'])
    for key, value in kwargs.items():
        setattr(args, key, value)
    return args


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# Test 1: Synthetic curve
# =============================================================================

def test_synthetic_curve_default():
    curve = load_curve(create_test_args())

    assert len(curve.omega) == 60, "Default synthetic curve has 60 points"
    assert len(curve.omega) == len(curve.zeta), "omega and zeta should have same length"
    assert curve.title == "Synthetic curve"
    assert curve.samples.shape == (2, 60)
    assert np.all(np.diff(curve.omega) > 0), "Synthetic frequencies are increasing"


def test_synthetic_curve_custom_modes():
    args = create_test_args(demo_family='two_cities', demo_modes='20,0.03,2,1',
                            omega_min=1.0, omega_max=400.0, points=25)
    curve = load_curve(args)
    assert len(curve.omega) == 25
    assert curve.omega[0] == pytest.approx(1.0)
    assert curve.omega[-1] == pytest.approx(400.0)
    assert np.max(curve.zeta) <= 0.03 + 1e-12


def test_synthetic_curve_invalid_band():
    with pytest.raises(InvalidInputError):
        load_curve(create_test_args(omega_min=10.0, omega_max=1.0))


def test_frequency_filter():
    curve = load_curve(create_test_args())
    filtered = filter_by_frequency(curve, create_test_args(fit_min=1.0, fit_max=100.0))

    assert filtered.omega.min() >= 1.0
    assert filtered.omega.max() <= 100.0
    assert len(filtered.omega) < len(curve.omega)


def test_frequency_filter_removing_everything():
    curve = load_curve(create_test_args())
    with pytest.raises(InvalidInputError):
        filter_by_frequency(curve, create_test_args(fit_min=1e6))


# =============================================================================
# Test 2: Mode tables and settings
# =============================================================================

def test_parse_mode_table():
    table = parse_mode_table("10,0.04; 300,0.02;", 'zero_day')
    np.testing.assert_array_equal(table, [[10.0, 0.04], [300.0, 0.02]])


@pytest.mark.parametrize("expr,family", [
    ("10,0.04,1", 'zero_day'),
    ("10,abc", 'zero_day'),
    ("10,0.04", 'unicorn'),
    (" ; ", 'zero_day'),
])
def test_parse_mode_table_errors(expr, family):
    with pytest.raises(InvalidInputError):
        parse_mode_table(expr, family)


def test_build_setting_from_args():
    setting = build_setting(create_test_args(step_size=0.02, batch_size=8))
    assert setting.step_size == 0.02
    assert setting.batch_size == 8
    assert setting.max_iter == 300


# =============================================================================
# Test 3: Fitting handlers
# =============================================================================

def test_run_fitting_two_modes():
    args = create_test_args(max_iter=2000)
    curve = load_curve(args)
    result = run_fitting(curve, args)

    assert result.params.shape == (2, 2)
    assert np.isfinite(result.fit_error_rel)
    assert len(result.describe()) == 2
    assert result.describe()[0].startswith("Type 0 --- ")


def test_order_rounding_handler():
    args = create_test_args(demo_family='unicorn', demo_modes='10,0.05,1',
                            family='unicorn', modes=1)
    curve = load_curve(args)
    result = run_fitting(curve, args)
    table = run_order_rounding(result, curve)

    if table is not None:
        np.testing.assert_array_equal(table[:, 2], np.round(result.params[:, 2]))


# =============================================================================
# Test 4: main()
# =============================================================================

def test_main_default_pipeline():
    assert main(['-q', '--seed', '0', '--max-iter', '300']) == 0


def test_main_list_optimizers(capsys):
    assert main(['--list-optimizers']) == 0
    out = capsys.readouterr().out
    assert 'differential_evolution' in out
    assert 'aug_lagrangian' in out


def test_main_stochastic_optimizer_with_resampling():
    argv = ['-q', '--seed', '1', '--optimizer', 'adam', '--step-size', '0.05',
            '--batch-size', '8', '--samples', '20', '--max-iter', '100']
    assert main(argv) == 0


def test_main_invalid_demo_modes_returns_error(capsys):
    assert main(['-q', '--demo-modes', '10,oops']) == 1
    assert 'Invalid mode definition' in capsys.readouterr().err


def test_main_invalid_setting_returns_error():
    assert main(['-q', '--max-iter', '0']) == 1


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['--version'])
    assert excinfo.value.code == 0
    assert 'damping' in capsys.readouterr().out
