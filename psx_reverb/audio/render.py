"""Offline WAV rendering through the SPU reverb.

Usage:
    python -m psx_reverb.audio.render input.wav output.wav [--preset hall]
    python -m psx_reverb.audio.render --list-presets
"""

import argparse
import logging
import sys

import numpy as np

from psx_reverb.engine.core import render_psx
from psx_reverb.engine.params import PARAM_RANGES, default_params
from psx_reverb.engine.presets import PRESET_NAMES, PRESETS, find_preset
from shared.audio import load_wav, save_wav


def parse_preset(value: str) -> int:
    """Preset by catalog index ("4") or name ("hall", "studio-large")."""
    if value.isdigit():
        return int(value)
    try:
        return find_preset(value)
    except KeyError as exc:
        raise argparse.ArgumentTypeError(exc.args[0]) from None


def build_parser():
    parser = argparse.ArgumentParser(description="PSX SPU reverb offline renderer")
    parser.add_argument("input", nargs="?", help="Input WAV file")
    parser.add_argument("output", nargs="?", help="Output WAV file")
    parser.add_argument("--preset", type=parse_preset,
                        help="Preset name or index (default: Studio Large)")
    lo, hi = PARAM_RANGES["wet_gain_db"]
    gain_range = f"{lo:g} to {hi:g}; {lo:g} is silence"
    parser.add_argument("--wet", type=float, help=f"Wet gain in dB ({gain_range})")
    parser.add_argument("--dry", type=float, help=f"Dry gain in dB ({gain_range})")
    parser.add_argument("--master", type=float, help=f"Master gain in dB ({gain_range})")
    parser.add_argument("--tail", type=float, default=3.0,
                        help="Tail length in seconds (default 3.0)")
    parser.add_argument("--list-presets", action="store_true",
                        help="Print the preset catalog and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def list_presets():
    for i, preset in enumerate(PRESETS):
        print(f"{i}  {preset.name:<14} {preset.samples:6d} samples @ 22050 Hz")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s %(levelname)s: %(message)s")

    if args.list_presets:
        list_presets()
        return 0
    if not args.input or not args.output:
        parser.error("input and output are required")

    params = default_params()
    if args.preset is not None:
        if not 0 <= args.preset < len(PRESETS):
            parser.error(f"preset index {args.preset} out of range [0, {len(PRESETS)})")
        params["preset_index"] = args.preset
    if args.wet is not None:
        params["wet_gain_db"] = args.wet
    if args.dry is not None:
        params["dry_gain_db"] = args.dry
    if args.master is not None:
        params["master_gain_db"] = args.master

    audio, sr = load_wav(args.input)
    n = audio.shape[0]
    ch = "stereo" if audio.ndim == 2 else "mono"
    print(f"Loaded {args.input}: {n} samples, {sr} Hz, {ch}")

    tail_samples = int(args.tail * sr)
    if audio.ndim == 2:
        audio = np.vstack([audio, np.zeros((tail_samples, audio.shape[1]))])
    else:
        audio = np.concatenate([audio, np.zeros(tail_samples)])

    output = render_psx(audio, params, sr)
    save_wav(args.output, output, sr)
    print(f"Saved {args.output} ({PRESET_NAMES[params['preset_index']]})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
