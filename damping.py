#!/usr/bin/env python3
"""
Damping Curve Fitting
=====================

CLI tool for fitting frequency-dependent damping curves with sums of
closed-form damping modes.

Version: Imported from damping_analysis.version (single source of truth)

Features:
- Four mode families: ZeroDay, Unicorn, TwoCities, ThreeWiseMen
- Analytic gradients through a bounded reparameterization
- Soft-integer penalty / augmented Lagrangian for mode orders
- Ten optimizers (L-BFGS, CG, first-order, stochastic, DE)

Usage:
    damping                                  # synthetic curve demo
    damping --family unicorn --modes 3       # other family
    damping --optimizer differential_evolution --max-iter 200
    damping --list-optimizers                # optimizer capabilities

    damping --help                           # help
"""

import sys

from damping_analysis.cli import main


if __name__ == '__main__':
    sys.exit(main())
