"""SPU reverb presets: the hardware register sets shipped with the console.

Each preset is 32 packed 16-bit registers in hardware order. Registers whose
name starts with ``v`` are signed Q15 gains; the rest are unsigned addresses
in hardware units (one unit = 4 samples). ``size_bytes`` is the reverb
work area the preset reserves in sound RAM.
"""

import operator
from dataclasses import dataclass

from psx_reverb.engine.errors import InvalidPresetIndex

REGISTERS = (
    "dAPF1", "dAPF2", "vIIR", "vCOMB1", "vCOMB2", "vCOMB3", "vCOMB4", "vWALL",
    "vAPF1", "vAPF2", "mLSAME", "mRSAME", "mLCOMB1", "mRCOMB1", "mLCOMB2", "mRCOMB2",
    "dLSAME", "dRSAME", "mLDIFF", "mRDIFF", "mLCOMB3", "mRCOMB3", "mLCOMB4", "mRCOMB4",
    "dLDIFF", "dRDIFF", "mLAPF1", "mRAPF1", "mLAPF2", "mRAPF2", "vLIN", "vRIN",
)

ADDRESS_REGISTERS = tuple(r for r in REGISTERS if not r.startswith("v"))
GAIN_REGISTERS = tuple(r for r in REGISTERS if r.startswith("v"))

_INDEX = {name: i for i, name in enumerate(REGISTERS)}


def q15_to_float(v: int) -> float:
    return v / 32768.0


def float_to_q15(x: float) -> int:
    return int(max(-32768.0, min(32767.0, x * 32768.0)))


def _to_signed(word: int) -> int:
    return word - 0x10000 if word & 0x8000 else word


@dataclass(frozen=True)
class Preset:
    name: str
    size_bytes: int
    registers: tuple  # decoded values, signed for gain registers

    @classmethod
    def from_words(cls, name, words, size_bytes):
        if len(words) != len(REGISTERS):
            raise ValueError(f"preset {name!r}: expected {len(REGISTERS)} words, got {len(words)}")
        values = []
        for reg, word in zip(REGISTERS, words):
            word &= 0xFFFF
            values.append(_to_signed(word) if reg.startswith("v") else word)
        return cls(name, size_bytes, tuple(values))

    def to_words(self) -> tuple:
        return tuple(v & 0xFFFF for v in self.registers)

    def register(self, name: str) -> int:
        return self.registers[_INDEX[name]]

    @property
    def samples(self) -> int:
        """Work area in samples (16-bit words)."""
        return self.size_bytes >> 1


_CATALOG = [
    ("Room", 0x26C0, (
        0x007D, 0x005B, 0x6D80, 0x54B8, 0xBED0, 0x0000, 0x0000, 0xBA80,
        0x5800, 0x5300, 0x04D6, 0x0333, 0x03F0, 0x0227, 0x0374, 0x01EF,
        0x0334, 0x01B5, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000,
        0x0000, 0x0000, 0x01B4, 0x0136, 0x00B8, 0x005C, 0x8000, 0x8000,
    )),
    ("Studio Small", 0x1F40, (
        0x0033, 0x0025, 0x70F0, 0x4FA8, 0xBCE0, 0x4410, 0xC0F0, 0x9C00,
        0x5280, 0x4EC0, 0x03E4, 0x031B, 0x03A4, 0x02AF, 0x0372, 0x0266,
        0x031C, 0x025D, 0x025C, 0x018E, 0x022F, 0x0135, 0x01D2, 0x00B7,
        0x018F, 0x00B5, 0x00B4, 0x0080, 0x004C, 0x0026, 0x8000, 0x8000,
    )),
    ("Studio Medium", 0x4840, (
        0x00B1, 0x007F, 0x70F0, 0x4FA8, 0xBCE0, 0x4510, 0xBEF0, 0xB4C0,
        0x5280, 0x4EC0, 0x0904, 0x076B, 0x0824, 0x065F, 0x07A2, 0x0616,
        0x076C, 0x05ED, 0x05EC, 0x042E, 0x050F, 0x0305, 0x0462, 0x02B7,
        0x042F, 0x0265, 0x0264, 0x01B2, 0x0100, 0x0080, 0x8000, 0x8000,
    )),
    ("Studio Large", 0x6FE0, (
        0x00E3, 0x00A9, 0x6F60, 0x4FA8, 0xBCE0, 0x4510, 0xBEF0, 0xA680,
        0x5680, 0x52C0, 0x0DFB, 0x0B58, 0x0D09, 0x0A3C, 0x0BD9, 0x0973,
        0x0B59, 0x08DA, 0x08D9, 0x05E9, 0x07EC, 0x04B0, 0x06EF, 0x03D2,
        0x05EA, 0x031D, 0x031C, 0x0238, 0x0154, 0x00AA, 0x8000, 0x8000,
    )),
    ("Hall", 0xADE0, (
        0x01A5, 0x0139, 0x6000, 0x5000, 0x4C00, 0xB800, 0xBC00, 0xC000,
        0x6000, 0x5C00, 0x15BA, 0x11BB, 0x14C2, 0x10BD, 0x11BC, 0x0DC1,
        0x11C0, 0x0DC3, 0x0DC0, 0x09C1, 0x0BC4, 0x07C1, 0x0A00, 0x06CD,
        0x09C2, 0x05C1, 0x05C0, 0x041A, 0x0274, 0x013A, 0x8000, 0x8000,
    )),
    ("Half Echo", 0x3C00, (
        0x0017, 0x0013, 0x70F0, 0x4FA8, 0xBCE0, 0x4510, 0xBEF0, 0x8500,
        0x5F80, 0x54C0, 0x0371, 0x02AF, 0x02E5, 0x01DF, 0x02B0, 0x01D7,
        0x0358, 0x026A, 0x01D6, 0x011E, 0x012D, 0x00B1, 0x011F, 0x0059,
        0x01A0, 0x00E3, 0x0058, 0x0040, 0x0028, 0x0014, 0x8000, 0x8000,
    )),
    ("Space Echo", 0xF6C0, (
        0x033D, 0x0231, 0x7E00, 0x5000, 0xB400, 0xB000, 0x4C00, 0xB000,
        0x6000, 0x5400, 0x1ED6, 0x1A31, 0x1D14, 0x183B, 0x1BC2, 0x16B2,
        0x1A32, 0x15EF, 0x15EE, 0x1055, 0x1334, 0x0F2D, 0x11F6, 0x0C5D,
        0x1056, 0x0AE1, 0x0AE0, 0x07A2, 0x0464, 0x0232, 0x8000, 0x8000,
    )),
    ("Chaos Echo", 0x18040, (
        0x0001, 0x0001, 0x7FFF, 0x7FFF, 0x0000, 0x0000, 0x0000, 0x8100,
        0x0000, 0x0000, 0x1FFF, 0x0FFF, 0x1005, 0x0005, 0x0000, 0x0000,
        0x1005, 0x0005, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000,
        0x0000, 0x0000, 0x1004, 0x1002, 0x0004, 0x0002, 0x8000, 0x8000,
    )),
    ("Delay", 0x18040, (
        0x0001, 0x0001, 0x7FFF, 0x7FFF, 0x0000, 0x0000, 0x0000, 0x0000,
        0x0000, 0x0000, 0x1FFF, 0x0FFF, 0x1005, 0x0005, 0x0000, 0x0000,
        0x1005, 0x0005, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000,
        0x0000, 0x0000, 0x1004, 0x1002, 0x0004, 0x0002, 0x8000, 0x8000,
    )),
    ("Off", 0x10, (
        0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000, 0x0000,
        0x0000, 0x0000, 0x0001, 0x0001, 0x0001, 0x0001, 0x0001, 0x0001,
        0x0000, 0x0000, 0x0001, 0x0001, 0x0001, 0x0001, 0x0001, 0x0001,
        0x0000, 0x0000, 0x0001, 0x0001, 0x0001, 0x0001, 0x0000, 0x0000,
    )),
]

PRESETS = tuple(Preset.from_words(name, words, size) for name, size, words in _CATALOG)
PRESET_NAMES = tuple(p.name for p in PRESETS)

STUDIO_LARGE = PRESET_NAMES.index("Studio Large")
OFF = PRESET_NAMES.index("Off")

LONGEST_PRESET_SAMPLES = max(p.samples for p in PRESETS)


def lookup_preset(index) -> Preset:
    """Catalog entry at `index`.

    Host control ports carry floats, so a whole-number float selects the
    same preset as the integer. Anything else is rejected.
    """
    if isinstance(index, float) and index.is_integer():
        index = int(index)
    try:
        index = operator.index(index)
    except TypeError:
        raise InvalidPresetIndex(index, len(PRESETS)) from None
    if not 0 <= index < len(PRESETS):
        raise InvalidPresetIndex(index, len(PRESETS))
    return PRESETS[index]


def _normalize(name: str) -> str:
    return "".join(name.lower().replace("_", " ").replace("-", " ").split())


def find_preset(name: str) -> int:
    """Catalog index for a preset name ("hall", "Studio_Large", "space-echo")."""
    key = _normalize(name)
    for i, preset_name in enumerate(PRESET_NAMES):
        if _normalize(preset_name) == key:
            return i
    raise KeyError(f"unknown preset {name!r}; choose from {', '.join(PRESET_NAMES)}")
