#!/usr/bin/env python3
"""CLI for exploring the evoprims primitives."""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from .automata_rules import (
    ElementaryAutomataRule,
    LifeLikeAutomataRule,
    life_like_from_birth_survival,
    parse_birth_survival,
)
from .automaton import ColorAutomaton, ElementaryAutomaton
from .buffers import Buffer
from .colors import BitColor
from .errors import DecodeError
from .point_sets import PARAM_TYPES, PointSet, PointSetGenerator, PointSetKind
from .profiler import DEFAULT_PATH, MutagenProfiler
from .reseeders import Reseeder
from .traits import ProtoArg
from .util import deterministic_rng

PALETTE = np.array([color.get_color().to_rgba() for color in BitColor.values()], dtype=np.uint8)

PROFILE_TYPES = {
    "points": PointSet,
    "life": LifeLikeAutomataRule,
    "elementary": ElementaryAutomataRule,
    "reseeder": Reseeder,
}


def render_grid(grid: np.ndarray, cell_size: int = 1) -> Image.Image:
    """RGBA image of a grid of BitColor indices."""
    pixels = PALETTE[grid]
    if cell_size > 1:
        pixels = np.repeat(np.repeat(pixels, cell_size, axis=0), cell_size, axis=1)
    return Image.fromarray(pixels)


def cmd_points(args):
    """Generate a point set and print (or draw) it."""
    rng = deterministic_rng(args.seed)

    if args.kind is None:
        generator = PointSetGenerator.generate(rng)
    else:
        try:
            kind = PointSetKind[args.kind.upper()]
        except KeyError:
            print(f"Unknown point set kind '{args.kind}'. Choose from: {', '.join(k.name for k in PointSetKind)}")
            sys.exit(1)
        generator = PointSetGenerator(kind, {name: ptype.generate(rng) for name, ptype in PARAM_TYPES[kind].items()})

    point_set = generator.generate_point_set(rng)

    print(f"Generator: {json.dumps(generator.to_json())}")
    print(f"Points ({len(point_set)}):")
    for point in point_set:
        print(f"  {point}")

    if args.output:
        buffer = Buffer(args.size, args.size, fill=BitColor.BLACK)
        for point in point_set:
            buffer.draw_dot(point, BitColor.WHITE)
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        buffer.to_image().save(output)
        print(f"\nSaved: {output}")


def cmd_elementary(args):
    """Run a 1D elementary automaton and print its rows."""
    if not 0 <= args.rule <= 255:
        print(f"Rule must be in 0..255, got {args.rule}")
        sys.exit(1)

    rule = ElementaryAutomataRule.from_wolfram_code(args.rule)
    automaton = ElementaryAutomaton(args.width, rule)
    if args.random:
        automaton.randomize(deterministic_rng(args.seed))
    else:
        automaton.seed_center()

    rows = automaton.run(args.steps)

    if args.output:
        grid = np.where(rows, BitColor.WHITE.to_index(), BitColor.BLACK.to_index()).astype(np.uint8)
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        render_grid(grid, args.cell_size).save(output)
        print(f"Saved: {output}")
    else:
        for row in rows:
            print("".join("#" if cell else "." for cell in row))


def cmd_life(args):
    """Run a 2D color automaton and report populations."""
    rng = deterministic_rng(args.seed)

    if args.rule:
        try:
            birth, survival = parse_birth_survival(args.rule)
        except DecodeError as e:
            print(f"Error parsing rule '{args.rule}': {e}")
            sys.exit(1)
        rule = life_like_from_birth_survival(birth, survival)
        colors = [BitColor.BLACK, BitColor.WHITE]
    else:
        rule = LifeLikeAutomataRule.generate(rng)
        colors = None

    automaton = ColorAutomaton(args.width, args.height, rule=rule)
    if args.reseed:
        automaton.reseed(Reseeder.generate(rng))
    else:
        automaton.randomize(rng, colors)

    print(f"Rule: {args.rule or json.dumps(rule.to_json())}")
    print(f"  Grid size: {args.width}x{args.height}")
    print(f"  Steps: {args.steps}")
    print()

    frames = []
    for step in range(args.steps + 1):
        if args.output:
            frames.append(render_grid(automaton.grid, args.cell_size))
        if step % max(args.report_every, 1) == 0 or step == args.steps:
            print(f"  Step {step:5d}  population {automaton.population()}")
        if step < args.steps:
            automaton.step()

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        frames[0].save(output, save_all=True, append_images=frames[1:], duration=args.duration, loop=0)
        print(f"\nSaved: {output}")


def _load_profile(path, ignore):
    try:
        return MutagenProfiler.load(path, ignore)
    except FileNotFoundError:
        print(f"No profile found at {path}")
        sys.exit(1)
    except DecodeError as e:
        print(f"Error reading profile {path}: {e}")
        sys.exit(1)


def cmd_profile(args):
    """Count generate/mutate events while evolving random values."""
    if args.show:
        profiler = _load_profile(args.path, args.ignore)
        print(profiler.report(args.top))
        return

    rng = deterministic_rng(args.seed)
    if args.append and Path(args.path).exists():
        profiler = _load_profile(args.path, args.ignore)
    else:
        profiler = MutagenProfiler(args.ignore)
    arg = ProtoArg(profiler=profiler)

    value_type = PROFILE_TYPES[args.type]
    for _ in range(args.samples):
        value = value_type.generate(rng, arg)
        for _ in range(args.mutations):
            value = value.mutate(rng, arg)

    profiler.save(args.path)
    print(profiler.report(args.top))
    print(f"\nSaved: {args.path}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="evoprims - evolvable primitives for generative art and cellular automata"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Points command
    points_parser = subparsers.add_parser("points", help="Generate a point set")
    points_parser.add_argument("-k", "--kind", type=str, default=None, help="Point set kind (e.g. poisson)")
    points_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    points_parser.add_argument("--size", type=int, default=256, help="Image size in pixels")
    points_parser.add_argument("-o", "--output", type=str, default=None, help="Save a PNG of the points")
    points_parser.set_defaults(func=cmd_points)

    # Elementary command
    elem_parser = subparsers.add_parser("elementary", help="Run a 1D elementary automaton")
    elem_parser.add_argument("rule", type=int, help="Wolfram code (0-255)")
    elem_parser.add_argument("--width", type=int, default=64, help="Row width")
    elem_parser.add_argument("--steps", type=int, default=32, help="Generations to run")
    elem_parser.add_argument("--random", action="store_true", help="Random initial row instead of one center cell")
    elem_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    elem_parser.add_argument("--cell-size", type=int, default=4, help="Cell size in pixels")
    elem_parser.add_argument("-o", "--output", type=str, default=None, help="Save a PNG instead of printing")
    elem_parser.set_defaults(func=cmd_elementary)

    # Life command
    life_parser = subparsers.add_parser("life", help="Run a 2D color automaton")
    life_parser.add_argument("-r", "--rule", type=str, default=None, help="B/S rule (e.g. B3/S23); random if omitted")
    life_parser.add_argument("--width", type=int, default=100, help="Grid width")
    life_parser.add_argument("--height", type=int, default=100, help="Grid height")
    life_parser.add_argument("--steps", type=int, default=100, help="Simulation steps")
    life_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    life_parser.add_argument("--reseed", action="store_true", help="Start from a periodic pattern instead of noise")
    life_parser.add_argument("--report-every", type=int, default=10, help="Print population every N steps")
    life_parser.add_argument("--cell-size", type=int, default=4, help="Cell size in pixels")
    life_parser.add_argument("--duration", type=int, default=50, help="Frame duration in ms")
    life_parser.add_argument("-o", "--output", type=str, default=None, help="Save an animated GIF")
    life_parser.set_defaults(func=cmd_life)

    # Profile command
    profile_parser = subparsers.add_parser("profile", help="Profile generate/mutate events")
    profile_parser.add_argument("-t", "--type", choices=sorted(PROFILE_TYPES), default="points", help="Value type")
    profile_parser.add_argument("-n", "--samples", type=int, default=100, help="Values to generate")
    profile_parser.add_argument("-m", "--mutations", type=int, default=10, help="Mutations per value")
    profile_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    profile_parser.add_argument("--path", type=str, default=DEFAULT_PATH, help="Profile JSON file")
    profile_parser.add_argument("--append", action="store_true", help="Add to an existing profile")
    profile_parser.add_argument("--show", action="store_true", help="Print a saved profile and exit")
    profile_parser.add_argument("--top", type=int, default=10, help="Keys to show per event kind")
    profile_parser.add_argument("--ignore", nargs="*", default=[], metavar="TYPE", help="Type names not to count")
    profile_parser.set_defaults(func=cmd_profile)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
