"""Headless ROM runner.

Runs a ROM for a fixed number of frames inside one compiled scan and
optionally writes the result as a video or a screenshot.

    chip8core roms/pong.ch8 --frames 600 --ipf 10 --video pong.mp4
"""

import argparse
import sys
import time

import jax
import numpy as np

from chip8core.constants import QUIRKS
from chip8core.emulator import load_rom_file
from chip8core.errors import Chip8Error, raise_for_fault
from chip8core.logging import RunLogger
from chip8core.rendering import create_video, save_frame
from chip8core.runner import run_frames, FPS
from chip8core.state import create_state


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8core",
        description="Run a CHIP-8 ROM headlessly",
    )
    parser.add_argument("rom", type=str, help="Path to a raw .ch8 ROM")
    parser.add_argument(
        "--frames",
        type=int,
        default=FPS * 10,
        help="Number of 60Hz frames to run (default: 600)",
    )
    parser.add_argument(
        "--ipf",
        type=int,
        default=10,
        help="Instructions executed per frame (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the CXNN random generator (default: 0)",
    )
    parser.add_argument(
        "--quirk",
        action="append",
        default=[],
        choices=QUIRKS,
        help="Enable a legacy behaviour, can be repeated",
    )
    parser.add_argument("--video", type=str, default=None, help="Write an MP4 of every frame")
    parser.add_argument("--screenshot", type=str, default=None, help="Write the last frame as an image")
    parser.add_argument("--scale", type=int, default=8, help="Pixel upscaling factor (default: 8)")
    parser.add_argument("--color_scheme", type=str, default="classic", help="Rendering colours (default: classic)")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--log_level", type=str, default="INFO", help="Console log level (default: INFO)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.frames < 1 or args.ipf < 1:
        parser.error("--frames and --ipf must be positive")
    logger = RunLogger(log_level=args.log_level)
    quirks = {name: True for name in args.quirk}

    logger.log_run_start({
        "rom": args.rom,
        "frames": args.frames,
        "instructions_per_frame": args.ipf,
        "seed": args.seed,
        "quirks": ", ".join(args.quirk) or "none",
    })

    state = create_state(jax.random.PRNGKey(args.seed), **quirks)
    try:
        state = load_rom_file(state, args.rom)
    except (OSError, Chip8Error) as e:
        logger.error(f"Could not load ROM: {e}")
        return 1

    start = time.time()
    state, displays, beeps = jax.block_until_ready(
        run_frames(state, args.frames, args.ipf, args.progress)
    )
    elapsed = time.time() - start

    exit_code = 0
    try:
        raise_for_fault(state)
    except Chip8Error as e:
        logger.error(f"Program halted: {e} [{e.instruction}]")
        exit_code = 2

    if args.video:
        create_video(displays, filename=args.video, scale=args.scale, color_scheme=args.color_scheme)
        logger.info(f"Video saved: {args.video}")
    if args.screenshot:
        save_frame(displays[-1], args.screenshot, scale=args.scale, color_scheme=args.color_scheme)
        logger.info(f"Screenshot saved: {args.screenshot}")

    logger.log_run_end({
        "instructions": args.frames * args.ipf,
        "instructions_per_second": args.frames * args.ipf / max(elapsed, 1e-9),
        "beeps": int(np.sum(np.asarray(beeps))),
        "pc": f"0x{int(state.pc):03X}",
    })
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
