"""terracegen command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .config import PRESETS, TerrainConfig, load_config, save_config
from .curves import HeightCurve
from .errors import ConfigurationError, TerrainError
from .generator import TerrainGenerator
from .io import save_mesh
from .sculpting import NORMALIZATIONS
from .shapes import ShapeKind

_CURVES = {
    "identity": HeightCurve.identity,
    "ease-in": HeightCurve.ease_in,
    "flat": lambda: HeightCurve.linear(1.0, 1.0),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Terraced terrain mesh generator")
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a terraced mesh")
    source = generate.add_mutually_exclusive_group()
    source.add_argument("--config", dest="config_path", help="TerrainConfig JSON file")
    source.add_argument("--preset", choices=sorted(PRESETS))
    generate.add_argument("--shape", choices=[k.value for k in ShapeKind])
    generate.add_argument("--sides", type=int)
    generate.add_argument("--radius", type=float)
    generate.add_argument("--min-height", type=float)
    generate.add_argument("--max-height", type=float)
    generate.add_argument("--depth", type=int)
    generate.add_argument("--seed", type=int)
    generate.add_argument("--frequency", type=float, help="Base noise frequency")
    generate.add_argument("--octaves", type=int)
    generate.add_argument("--persistence", type=float)
    generate.add_argument("--lacunarity", type=float)
    generate.add_argument("--normalization", choices=NORMALIZATIONS)
    generate.add_argument("--curve", choices=sorted(_CURVES))
    heights = generate.add_mutually_exclusive_group()
    heights.add_argument("--terraces", type=int, help="Number of evenly spaced terraces")
    heights.add_argument("--heights", help="Comma-separated relative heights, e.g. 0,0.3,0.7")
    generate.add_argument("--out", dest="output_path", help="Output mesh (.obj or .json)")
    generate.add_argument("--render-out", dest="render_path", help="PNG preview path")
    generate.add_argument("--save-config", dest="save_config_path")
    generate.add_argument("--summary", action="store_true")
    generate.add_argument("--summary-json", dest="summary_json")
    generate.add_argument("-v", "--verbose", action="count", default=0)

    preset = sub.add_parser("preset", help="Print a preset configuration as JSON")
    preset.add_argument("name", choices=sorted(PRESETS))
    preset.add_argument("--out", dest="output_path")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "generate":
        _configure_logging(args.verbose)
        try:
            _cmd_generate(args)
        except TerrainError as exc:
            print(f"error: {exc}")
            raise SystemExit(1)

    elif args.command == "preset":
        config = PRESETS[args.name]
        if args.output_path:
            save_config(config, args.output_path)
            print(f"Saved {args.output_path}")
        else:
            print(json.dumps(config.to_dict(), indent=2))


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _config_from_args(args) -> TerrainConfig:
    if args.config_path:
        base = load_config(args.config_path)
    elif args.preset:
        base = PRESETS[args.preset]
    else:
        base = TerrainConfig()

    data: Dict[str, Any] = base.to_dict()
    sculpt: Dict[str, Any] = data["sculpt"]

    for attr, key in (
        ("shape", "shape"),
        ("sides", "sides"),
        ("radius", "radius"),
        ("min_height", "min_height"),
        ("max_height", "max_height"),
        ("depth", "depth"),
    ):
        value = getattr(args, attr)
        if value is not None:
            data[key] = value
    for attr, key in (
        ("seed", "seed"),
        ("frequency", "base_frequency"),
        ("octaves", "octaves"),
        ("persistence", "persistence"),
        ("lacunarity", "lacunarity"),
        ("normalization", "normalization"),
    ):
        value = getattr(args, attr)
        if value is not None:
            sculpt[key] = value

    # Switching shape family without --min-height: pick a valid floor.
    if args.shape is not None and args.min_height is None:
        if args.shape == ShapeKind.POLYGON.value:
            data["min_height"] = 0.0
        elif data["min_height"] == 0.0:
            data["min_height"] = data["max_height"] / 2.0
    if args.terraces is not None:
        data["terrace_count"] = args.terraces
        data["relative_heights"] = None
    if args.heights is not None:
        data["relative_heights"] = [float(h) for h in args.heights.split(",") if h.strip()]
        data["terrace_count"] = None

    config = TerrainConfig.from_dict(data)
    if args.curve:
        config = replace(config, sculpt=replace(config.sculpt, height_curve=_CURVES[args.curve]()))
    return config


def _cmd_generate(args) -> None:
    from .diagnostics import mesh_summary, summary_lines

    config = _config_from_args(args)
    if args.output_path and Path(args.output_path).suffix.lower() not in (".obj", ".json"):
        raise ConfigurationError(f"--out must end in .obj or .json, got {args.output_path}")
    with TerrainGenerator(config) as generator:
        result = generator.run()
    mesh = result.mesh
    seed = result.seed

    if args.save_config_path:
        save_config(config.with_seed(seed), args.save_config_path)
    if args.output_path:
        save_mesh(mesh, args.output_path)
        print(f"Saved {args.output_path}")
    if args.render_path:
        from .render import render_png
        render_png(mesh, args.render_path)
        print(f"Saved {args.render_path}")

    summary = mesh_summary(mesh, config.height_model)
    summary["seed"] = seed
    if args.summary:
        print(f"seed:         {seed}")
        for line in summary_lines(summary):
            print(line)
    if args.summary_json:
        Path(args.summary_json).write_text(json.dumps(summary, indent=2), encoding="utf-8")
