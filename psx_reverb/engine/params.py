"""Host control schema for the SPU reverb.

These are the values a host hands the engine on every block. Everything
else the reverb needs comes from the preset table.
"""

from shared.params import ParamType as T, ParamDef, ParamSchema
from primitives.dsp import SILENCE_DB
from psx_reverb.engine.presets import PRESET_NAMES, STUDIO_LARGE

SR = 44100              # default rate for offline rendering
NATIVE_SR = 22050.0     # rate the SPU reverb runs at on hardware
ADDRESS_UNIT = 4        # samples per hardware address unit
SMOOTHING_ALPHA = 0.001

DEFAULT_PRESET = STUDIO_LARGE

_GAIN_RANGE = (SILENCE_DB, 12.0)

# ── Schema ────────────────────────────────────────────────────────────

_PARAMS = [
    ParamDef("wet_gain_db", T.FLOAT, section="mix", label="Wet",
             unit="dB", default=0.0, range=_GAIN_RANGE),

    ParamDef("dry_gain_db", T.FLOAT, section="mix", label="Dry",
             unit="dB", default=0.0, range=_GAIN_RANGE),

    ParamDef("master_gain_db", T.FLOAT, section="mix", label="Master",
             unit="dB", default=0.0, range=_GAIN_RANGE),

    ParamDef("preset_index", T.CHOICE, section="preset", label="Preset",
             default=DEFAULT_PRESET, choices=list(PRESET_NAMES)),
]

SCHEMA = ParamSchema(_PARAMS)

default_params = SCHEMA.default_params
PARAM_RANGES = SCHEMA.param_ranges()
CHOICE_RANGES = SCHEMA.choice_ranges()
