"""
CLI entry point for Harmonik.

Usage:
    harmonik render [options] [-o out.png]
    harmonik view [options]
    harmonik presets
    python -m harmonik <command> [options]
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from harmonik.core.fields import EFFECTS
from harmonik.core.normalize import ClampPolicy
from harmonik.io.exporter import DEFAULT_FILENAME, export_png
from harmonik.model import ParameterModel
from harmonik.presets import load_presets
from harmonik.renderer import FieldRenderer, RenderConfig

logger = logging.getLogger(__name__)

# Canvas size profiles
PROFILES = {
    "low": {"width": 400, "height": 225},
    "medium": {"width": 800, "height": 450},
    "high": {"width": 1920, "height": 1080},
}


def _add_common_args(parser: argparse.ArgumentParser):
    # Parameters
    parser.add_argument("--preset", type=str, default=None, help="Start from a named preset")
    parser.add_argument("--random", action="store_true", help="Start from randomized parameters")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --random and the 'r' key")
    parser.add_argument(
        "-e", "--effect", type=str, default=None,
        choices=[e.value for e in EFFECTS],
        help="Field effect (overrides preset)",
    )
    parser.add_argument("--speed", type=float, default=None, help="Time multiplier, 0-2")
    parser.add_argument("--scale", type=float, default=None, help="Luminance scale, 0-2")
    parser.add_argument("--blend", type=float, default=None, help="Blend toward mid-gray, 0-1")
    parser.add_argument(
        "--invert", action=argparse.BooleanOptionalAction, default=None,
        help="Invert luminance",
    )
    parser.add_argument(
        "--presets-file", type=Path, default=None,
        help="JSON file with extra presets",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=list(PROFILES),
        help="Canvas profile (low: 400x225, medium: 800x450, high: 1920x1080)",
    )
    parser.add_argument("--width", type=int, default=None, help="Canvas width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Canvas height (overrides profile)")

    # Rendering
    parser.add_argument("--workers", type=int, default=1, help="Row bands rendered in parallel")
    parser.add_argument(
        "--clamp", type=str, default=ClampPolicy.NONE.value,
        choices=[c.value for c in ClampPolicy],
        help="Clamp out-of-range values (default: none)",
    )
    parser.add_argument(
        "--sample-offset", type=float, default=0.5,
        help="Sample position inside each pixel (0.5 = centre, 0 = corner)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harmonik",
        description="Real-time procedural field synthesizer",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress details")

    sub = parser.add_subparsers(dest="command", required=True)

    render_p = sub.add_parser("render", help="Render a single frame to PNG")
    _add_common_args(render_p)
    render_p.add_argument(
        "-o", "--output", type=Path, default=Path(DEFAULT_FILENAME),
        help=f"Output PNG path (default: {DEFAULT_FILENAME})",
    )
    render_p.add_argument(
        "-t", "--time", type=float, default=0.0,
        help="Frame timestamp in milliseconds (default: 0)",
    )

    view_p = sub.add_parser("view", help="Open the live window")
    _add_common_args(view_p)
    view_p.add_argument("-f", "--fps", type=int, default=60, help="Target refresh rate (default: 60)")
    view_p.add_argument("--animate", action="store_true", help="Start animating immediately")
    view_p.add_argument(
        "-o", "--output", type=Path, default=Path(DEFAULT_FILENAME),
        help="Where the 's' key saves frames",
    )

    presets_p = sub.add_parser("presets", help="List presets as JSON")
    presets_p.add_argument("--presets-file", type=Path, default=None, help="JSON file with extra presets")

    return parser


def build_config(args: argparse.Namespace) -> RenderConfig:
    p_cfg = PROFILES[args.profile]
    return RenderConfig(
        width=args.width or p_cfg["width"],
        height=args.height or p_cfg["height"],
        sample_offset=args.sample_offset,
        clamp=ClampPolicy(args.clamp),
        workers=max(1, args.workers),
    )


def build_model(args: argparse.Namespace) -> ParameterModel:
    """Resolve preset, randomization and explicit overrides, in that order."""
    model = ParameterModel(presets=load_presets(args.presets_file), seed=args.seed)

    if args.preset is not None:
        model.apply_preset(args.preset)
    if args.random:
        model.randomize()

    overrides = {
        name: getattr(args, name)
        for name in ("effect", "speed", "scale", "blend", "invert")
        if getattr(args, name) is not None
    }
    if overrides:
        model.set(**overrides)
    return model


def _cmd_render(args: argparse.Namespace) -> int:
    config = build_config(args)
    model = build_model(args)
    params = model.snapshot()

    print(f"Rendering {params.effect.value} at {config.width}x{config.height}, t={args.time:g} ms")
    logger.info("Parameters: %s", params.to_dict())

    t0 = time.time()
    frame = FieldRenderer(config).render_frame(params, args.time)
    logger.info("Render took %.3fs", time.time() - t0)

    output = export_png(frame, args.output)
    print(f"  Output: {output}")
    return 0


def _cmd_view(args: argparse.Namespace) -> int:
    # pygame is only needed for the live window
    from harmonik.viewer import LiveViewer

    viewer = LiveViewer(
        config=build_config(args),
        model=build_model(args),
        fps=args.fps,
        save_path=args.output,
        autostart=args.animate,
    )
    viewer.run()
    return 0


def _cmd_presets(args: argparse.Namespace) -> int:
    registry = load_presets(args.presets_file)
    print(json.dumps({name: p.to_dict() for name, p in registry.items()}, indent=2))
    return 0


COMMANDS = {
    "render": _cmd_render,
    "view": _cmd_view,
    "presets": _cmd_presets,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return COMMANDS[args.command](args)
    except (ValueError, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
