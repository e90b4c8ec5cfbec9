"""Command line surface for generating a map and reporting its statistics.

Example:
  mapgen-stats --width 128 --height 128 --seed 7 --amplitude 25
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import fields
from typing import List, Optional, Sequence

from mapgen.errors import MapGenError
from mapgen.world.generation import generate
from mapgen.world.map_data import MapParameters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapgen-stats",
        description="Generate a procedural map surface and print its statistics.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    defaults = MapParameters()
    for param in fields(MapParameters):
        default = getattr(defaults, param.name)
        parser.add_argument(
            f"--{param.name.replace('_', '-')}",
            dest=param.name,
            type=type(default),
            default=default,
            help=f"{param.name} (default: {default})",
        )
    return parser


def describe(parameters: MapParameters) -> List[str]:
    geometry, material = generate(parameters)
    return [
        f"grid:          {parameters.width} x {parameters.height}",
        f"vertices:      {geometry.vertex_count}",
        f"triangles:     {geometry.triangle_count}",
        f"height range:  {material.min_height:.3f} .. {material.max_height:.3f} ({material.height_range:.3f})",
        f"roughness:     {material.roughness:.3f}",
        f"fingerprint:   {parameters.fingerprint()}",
    ]


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    values = {param.name: getattr(args, param.name) for param in fields(MapParameters)}
    try:
        parameters = MapParameters().replace(**values)
        lines = describe(parameters)
    except MapGenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
