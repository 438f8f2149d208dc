#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Beta / Sigma Convergence Scenarios — Main Entry Point
======================================================

Usage
-----
    python main.py                          # all ten scenarios, seed 42
    python main.py --seed 7                 # different random draw
    python main.py --scenario stability --scenario late_entrants
    python main.py --no-plots               # tables and report only
    python main.py --output results_run2    # custom output directory
    python main.py --data panel.csv         # analyse an external panel

Pipeline Phases (per scenario)
------------------------------
1. Synthesis            – seeded growth scenario
2. Baselines            – first observed value per area
3. Analysis             – beta regression, dispersion series, trends
4. Visualisation        – trajectories, beta scatter, dispersion panels
5. Result Export        – CSV / JSON / text report
"""

import sys


def _option_values(argv, flag):
    """All values following ``flag`` in ``argv``."""
    values = []
    for i, arg in enumerate(argv):
        if arg == flag:
            if i + 1 >= len(argv) or argv[i + 1].startswith('--'):
                raise SystemExit(f"Missing value for {flag}")
            values.append(argv[i + 1])
    return values


def main(argv=None):
    """Configure and execute the scenario pipeline."""
    argv = list(sys.argv[1:] if argv is None else argv)

    if '--help' in argv or '-h' in argv:
        print(__doc__)
        return 0

    # Lazy imports (avoids heavy loading on --help)
    from betasigma import ConvergencePipeline, get_default_config, SCENARIOS
    from betasigma.exceptions import ConvergenceError

    config = get_default_config()

    seeds = _option_values(argv, '--seed')
    if seeds:
        config.random.seed = int(seeds[-1])
    outputs = _option_values(argv, '--output')
    if outputs:
        config.paths.output_name = outputs[-1]
    if '--no-plots' in argv:
        config.visualization.enabled = False

    scenarios = _option_values(argv, '--scenario') or list(SCENARIOS)
    unknown = [s for s in scenarios if s not in SCENARIOS]
    if unknown:
        print(f"  Unknown scenario(s): {', '.join(unknown)}")
        print(f"  Available: {', '.join(SCENARIOS)}")
        return 2

    print(f"\n{'='*70}")
    print("  BETA-CONVERGENCE / SIGMA-DIVERGENCE SCENARIOS")
    print(f"{'='*70}")
    print(f"  Seed              : {config.random.seed}")
    print(f"  Areas × years     : {config.panel.n_areas} × {config.panel.n_years}")
    print(f"  Scenarios         : {len(scenarios)}")
    print(f"  Significance      : {config.convergence.significance_level}")
    print(f"  Figures           : {'yes' if config.visualization.enabled else 'no'}")
    print(f"  Output            : {config.output_dir}")
    print(f"{'='*70}\n")

    pipeline = ConvergencePipeline(config)

    data_paths = _option_values(argv, '--data')
    try:
        if data_paths:
            for path in data_paths:
                run = pipeline.analyze_file(path)
                print(run.result.summary())
            return 0

        result = pipeline.run(scenarios)
        print_results(result)
    except (ConvergenceError, OSError) as e:
        print(f"\n  ERROR: {e}")
        return 1

    return 1 if result.errors else 0


def print_results(result):
    """Print a classification table of every scenario."""
    table = result.classification_table()

    print(f"\n{'='*70}")
    print("  RESULTS SUMMARY (converge / diverge / none)")
    print(f"{'='*70}")
    if not table.empty:
        print(table.to_string(index=False))

    if result.errors:
        print(f"\n  FAILED SCENARIOS")
        for name, err in result.errors.items():
            print(f"    {name:<22} {err}")

    print(f"\n  RUNTIME : {result.execution_time:.2f}s")
    print(f"{'='*70}")


if __name__ == '__main__':
    sys.exit(main())
