"""Core mathematics and configuration for the ARB PRO dutching calculator.

This package contains pure, framework-agnostic building blocks:

- ``odds_math``   — bet classification, boost, effective odd, rounding, parsing
- ``arb_calc``    — the five-stage dutching / arbitrage stake solver
- ``calc_config`` — calculator constants (rounding presets, solve floor)

Nothing in this package imports from ``backend.services`` or ``backend.main``.
All modules are side-effect-free and unit-testable in isolation.
"""
