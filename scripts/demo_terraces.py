#!/usr/bin/env python3
"""Demo: full terracing pipeline — shape, fragment, sculpt, terrace, render.

Usage
-----
    python scripts/demo_terraces.py --preset rolling_hills --out exports/hills.png
    python scripts/demo_terraces.py --preset planetoid --seed 7 --ramp sandstone --out exports/planet.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from terracegen import PRESETS, TerrainGenerator, save_mesh
from terracegen.diagnostics import mesh_summary, summary_lines
from terracegen.render import render_png


def main() -> None:
    parser = argparse.ArgumentParser(description="Terraced terrain demo")
    parser.add_argument("--preset", choices=sorted(PRESETS), default="rolling_hills")
    parser.add_argument("--seed", type=int, default=None, help="Override the preset seed")
    parser.add_argument("--depth", type=int, default=None, help="Override the preset depth")
    parser.add_argument("--out", default="exports/terraces.png")
    parser.add_argument("--mesh-out", default=None, help="Also save the mesh (.obj or .json)")
    parser.add_argument("--ramp", default="earth")
    parser.add_argument("--dpi", type=int, default=150)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = PRESETS[args.preset]
    if args.seed is not None:
        config = config.with_seed(args.seed)
    if args.depth is not None:
        from dataclasses import replace
        config = replace(config, depth=args.depth)

    # ── 1. Generate ─────────────────────────────────────────────────
    print(f"Generating {args.preset} (shape={config.shape.value}, depth={config.depth})…")
    with TerrainGenerator(config) as generator:
        result = generator.run()
    mesh = result.mesh

    for name, seconds in result.elapsed.items():
        print(f"  {name:<9s} {seconds:6.3f}s")

    # ── 2. Summarise ────────────────────────────────────────────────
    for line in summary_lines(mesh_summary(mesh, config.height_model)):
        print(f"  {line}")

    # ── 3. Save ─────────────────────────────────────────────────────
    if args.mesh_out:
        save_mesh(mesh, args.mesh_out)
        print(f"Saved {args.mesh_out}")

    # ── 4. Render ───────────────────────────────────────────────────
    print("Rendering terraces…")
    render_png(
        mesh,
        args.out,
        ramp=args.ramp,
        dpi=args.dpi,
        title=f"{args.preset} — {mesh.terrace_count} terraces",
    )

    print(f"Done ✓  →  {args.out}")


if __name__ == "__main__":
    main()
