#!/usr/bin/env python3
"""
Grow a single snowfake and write it as SVG.

    python src/scripts/run_sim.py 201 --out results/flake.svg
"""

import argparse
import sys
import time

from snowfake import (
    AllocationError,
    ConfigurationError,
    GrowthParams,
    SnowfakeConfig,
    SnowfakeSimulator,
    render,
    utils,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a Gravner-Griffeath 2D snowfake as SVG",
    )
    parser.add_argument("size", help="grid size N (odd, >= 5)")
    parser.add_argument(
        "--params", default=None, help="JSON or TOML file of physical constants"
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="seed for the noise phase (sigma > 0)"
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=100_000,
        help="hard tick cap, 0 to disable (default: 100000)",
    )
    parser.add_argument(
        "--out", default="-", help="SVG output path, '-' for stdout (default)"
    )
    parser.add_argument(
        "--save-npz", default=None, help="also save the final crystal as .npz"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="no progress dots on stderr"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        params = utils.load_params(args.params) if args.params else GrowthParams()
        config = SnowfakeConfig(
            size=args.size,
            params=params,
            max_ticks=args.max_ticks or None,
            seed=args.seed,
            verbose=not args.quiet,
        )
        simulator = SnowfakeSimulator(config)
    except ConfigurationError as e:
        print(f"snowfake: {e}", file=sys.stderr)
        return 2
    except AllocationError as e:
        print(f"snowfake: {e}", file=sys.stderr)
        return 1

    start_time = time.time()
    reason = simulator.run()
    elapsed_time = time.time() - start_time

    if args.out == "-":
        render.write_svg(sys.stdout, simulator.attached, simulator.crystal_mass)
    else:
        render.write_svg(args.out, simulator.attached, simulator.crystal_mass)

    if args.save_npz:
        utils.save_crystal(args.save_npz, simulator.result())

    if not args.quiet:
        print(
            f"Stopped ({reason.value}) after {simulator.tick} ticks in "
            f"{elapsed_time:.2f}s; {int(simulator.attached.sum())} cells attached",
            file=sys.stderr,
        )
        if args.out != "-":
            print(f"SVG saved to {args.out}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
