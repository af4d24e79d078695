"""Preset -> runtime parameters at an arbitrary sample rate.

The hardware runs at 22050 Hz with addresses in 4-sample units. Every
address register is stretched by sample_rate / 22050; gains are plain Q15
ratios and are copied. The one exception is vIIR: it is the coefficient of
a one-pole lowpass, so it is re-derived to keep its corner frequency (and
with it the decay colour) rather than its raw value.
"""

import logging
from dataclasses import dataclass

import numpy as np

from primitives.filters import rescale_alpha
from psx_reverb.engine.params import ADDRESS_UNIT, NATIVE_SR
from psx_reverb.engine.presets import ADDRESS_REGISTERS, GAIN_REGISTERS, Preset, q15_to_float

log = logging.getLogger(__name__)

_OFFSET_INDEX = {name: i for i, name in enumerate(ADDRESS_REGISTERS)}
_COEFF_INDEX = {name: i for i, name in enumerate(GAIN_REGISTERS)}


@dataclass(frozen=True, eq=False)
class RuntimeParams:
    """Sample-rate-adapted preset.

    offsets: int64 samples, ADDRESS_REGISTERS order
    coeffs:  float64 gains, GAIN_REGISTERS order
    """
    name: str
    sample_rate: float
    stretch: float
    offsets: np.ndarray
    coeffs: np.ndarray

    def offset(self, name: str) -> int:
        return int(self.offsets[_OFFSET_INDEX[name]])

    def coeff(self, name: str) -> float:
        return float(self.coeffs[_COEFF_INDEX[name]])

    def as_dict(self) -> dict:
        d = {name: int(v) for name, v in zip(ADDRESS_REGISTERS, self.offsets)}
        d.update({name: float(v) for name, v in zip(GAIN_REGISTERS, self.coeffs)})
        return d

    def __eq__(self, other):
        if not isinstance(other, RuntimeParams):
            return NotImplemented
        return (self.name == other.name
                and self.sample_rate == other.sample_rate
                and self.stretch == other.stretch
                and np.array_equal(self.offsets, other.offsets)
                and np.array_equal(self.coeffs, other.coeffs))

    __hash__ = None


def derive_params(preset: Preset, sample_rate: float) -> RuntimeParams:
    stretch = sample_rate / NATIVE_SR

    raw = np.array([preset.register(r) for r in ADDRESS_REGISTERS], dtype=np.float64)
    offsets = np.floor(raw * ADDRESS_UNIT * stretch).astype(np.int64)

    coeffs = np.array([q15_to_float(preset.register(r)) for r in GAIN_REGISTERS],
                      dtype=np.float64)
    iir = _COEFF_INDEX["vIIR"]
    coeffs[iir] = rescale_alpha(coeffs[iir], NATIVE_SR, sample_rate)

    offsets.flags.writeable = False
    coeffs.flags.writeable = False
    log.debug("derived %s @ %.0f Hz (stretch %.4f, vIIR %.5f)",
              preset.name, sample_rate, stretch, coeffs[iir])
    return RuntimeParams(preset.name, float(sample_rate), stretch, offsets, coeffs)
