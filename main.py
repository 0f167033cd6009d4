#!/usr/bin/env python3
"""
Pulse Estimator – command line entry point.

Usage
-----
    python main.py --input samples.json [OPTIONS]
    python main.py --demo [OPTIONS]

Options
-------
    --input PATH         JSON capture: a list of {r, g, b, timestamp} objects
                         or {"signals": [...], "fps": N}.  "-" reads stdin.
    --fps FLOAT          Sampling rate in Hz (overrides the file's value)
    --demo               Synthesise a capture instead of reading a file
    --demo-bpm FLOAT     Pulse rate of the synthetic capture (default: 72)
    --duration FLOAT     Length of the synthetic capture in seconds (default: 30)
    --noise FLOAT        Red/blue noise of the synthetic capture (default: 0.1)
    --seed INT           Random seed of the synthetic capture (default: 0)
    --pretty             Indent the JSON output
    --verbose            Log pipeline details

Exit codes
----------
    0  result printed (including "no reliable reading" results)
    1  unreadable or invalid input
    2  not enough valid samples
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pulse_estimator.config import DEFAULT_CONFIG
from pulse_estimator.errors import InsufficientSamplesError, InvalidRequestError
from pulse_estimator.processor import process
from pulse_estimator.samples import RawSample, validate_request
from pulse_estimator.synthetic import synthesize_capture

logger = logging.getLogger("pulse_estimator")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Estimate heart rate from recorded rPPG colour samples",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", default=None,
                        help="JSON capture file, or - for stdin")
    source.add_argument("--demo", action="store_true",
                        help="Synthesise a capture instead of reading a file")
    parser.add_argument("--fps", type=float, default=None,
                        help="Sampling rate in Hz (default: file value or "
                             f"{DEFAULT_CONFIG.default_fps:g})")
    parser.add_argument("--demo-bpm", type=float, default=72.0,
                        help="Pulse rate of the synthetic capture")
    parser.add_argument("--duration", type=float, default=30.0,
                        help="Length of the synthetic capture in seconds")
    parser.add_argument("--noise", type=float, default=0.1,
                        help="Red/blue noise of the synthetic capture")
    parser.add_argument("--seed", type=int, default=0,
                        help="Random seed of the synthetic capture")
    parser.add_argument("--pretty", action="store_true",
                        help="Indent the JSON output")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser.parse_args(argv)


def load_capture(source: str) -> Tuple[List[Any], Optional[float]]:
    """Read ``(signals, fps)`` from a JSON file or stdin."""
    if source == "-":
        data = json.load(sys.stdin)
    else:
        with Path(source).open("r", encoding="utf-8") as fh:
            data = json.load(fh)

    if isinstance(data, list):
        return data, None
    if isinstance(data, dict) and isinstance(data.get("signals"), list):
        fps = data.get("fps")
        return data["signals"], float(fps) if fps is not None else None
    raise InvalidRequestError(
        "Expected a list of samples or an object with a 'signals' list"
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    signals: List[Any]
    fps = args.fps
    try:
        if args.demo:
            fps = fps or DEFAULT_CONFIG.default_fps
            signals = synthesize_capture(
                bpm=args.demo_bpm,
                fps=fps,
                duration=args.duration,
                noise=args.noise,
                seed=args.seed,
            )
            logger.info("Synthesised %d samples at %.1f fps (%.0f BPM)",
                        len(signals), fps, args.demo_bpm)
        else:
            signals, file_fps = load_capture(args.input)
            fps = fps if fps is not None else file_fps
        samples: List[RawSample] = validate_request(signals, fps)
    except (OSError, TypeError, ValueError) as e:
        # json.JSONDecodeError and InvalidRequestError are ValueErrors
        logger.error("Cannot read capture: %s", e)
        return 1

    try:
        result = process(samples, fps)
    except InsufficientSamplesError as e:
        logger.error("%s (%d received, %d valid)", e, e.received, e.valid)
        return 2

    json.dump(result.to_dict(), sys.stdout, indent=2 if args.pretty else None)
    sys.stdout.write("\n")
    logger.info("%s", result.message)
    return 0


def main(argv: list[str] | None = None) -> int:
    return run(parse_args(argv))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
