#!/usr/bin/env python3
"""Launch the offline renderer from the project root.

Usage:
    uv run python main.py input.wav output.wav --preset hall
    uv run python main.py --list-presets
"""

import sys

if __name__ == "__main__":
    from psx_reverb.audio.render import main
    sys.exit(main())
