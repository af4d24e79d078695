"""Circular delay buffer with power-of-two masked addressing.

All taps are addressed relative to a moving cursor:

    cell = (cursor + offset) & (size - 1)

Because the size is a power of two, the mask wraps any offset whose
magnitude is below ``size``, negative ones included.
"""

import math

import numpy as np
from numba import njit

from primitives.dsp import next_power_of_two


@njit(cache=True)
def masked_read(buf, mask, cursor, offset):
    return buf[(cursor + offset) & mask]


@njit(cache=True)
def masked_write(buf, mask, cursor, offset, value):
    buf[(cursor + offset) & mask] = value


class DelayBuffer:
    """One contiguous sample store shared by every tap of the reverb.

    Usage:
        buf = DelayBuffer(65536)
        buf.write(100, x)      # cell cursor + 100
        y = buf.read(99)       # cell cursor + 99
        buf.advance()          # move the cursor one sample forward
    """

    def __init__(self, size: int):
        if size < 1 or size & (size - 1):
            raise ValueError(f"delay buffer size must be a power of two, got {size}")
        self.samples = np.zeros(size, dtype=np.float64)
        self.mask = size - 1
        self.cursor = 0

    @classmethod
    def for_sample_rate(cls, longest_native_samples: int, sample_rate: float,
                        native_rate: float) -> "DelayBuffer":
        """Size the buffer for the longest requirement, stretched to `sample_rate`."""
        return cls(required_size(longest_native_samples, sample_rate, native_rate))

    def size(self) -> int:
        return self.mask + 1

    def read(self, offset: int) -> float:
        return self.samples[(self.cursor + offset) & self.mask]

    def write(self, offset: int, value: float):
        self.samples[(self.cursor + offset) & self.mask] = value

    def advance(self):
        self.cursor = (self.cursor + 1) & self.mask

    def clear(self):
        """Zero the samples; the cursor stays where it is."""
        self.samples[:] = 0.0

    def reset(self):
        """Zero the samples and rewind the cursor."""
        self.samples[:] = 0.0
        self.cursor = 0


def required_size(longest_native_samples: int, sample_rate: float,
                  native_rate: float) -> int:
    """Power-of-two buffer length covering `longest_native_samples` at `sample_rate`."""
    stretched = math.ceil(longest_native_samples * (sample_rate / native_rate))
    return next_power_of_two(stretched)
