"""One-pole coefficient conversion and the gain smoother."""

import math

import numpy as np

from primitives.dsp import db_to_gain


def alpha_to_fc(alpha: float, sr: float) -> float:
    """Corner frequency (Hz) of a one-pole lowpass with coefficient `alpha` at `sr`.

    fc = 1 / (2*pi * (dt/alpha - dt)),  dt = 1/sr

    alpha <= 0 is a filter that never moves (0 Hz); alpha >= 1 passes
    everything (infinite corner).
    """
    if alpha <= 0.0:
        return 0.0
    if alpha >= 1.0:
        return math.inf
    dt = 1.0 / sr
    return 1.0 / (2.0 * math.pi * (dt / alpha - dt))


def fc_to_alpha(fc: float, sr: float) -> float:
    """Inverse of alpha_to_fc: alpha = dt / (rc + dt),  rc = 1/(2*pi*fc)."""
    if fc <= 0.0:
        return 0.0
    if math.isinf(fc):
        return 1.0
    dt = 1.0 / sr
    rc = 1.0 / (2.0 * math.pi * fc)
    return dt / (rc + dt)


def rescale_alpha(alpha: float, from_sr: float, to_sr: float) -> float:
    """Re-derive a one-pole coefficient so its time constant survives a rate change."""
    return fc_to_alpha(alpha_to_fc(alpha, from_sr), to_sr)


class GainSmoother:
    """Bank of one-pole smoothers chasing linear gain targets.

    Each step: values += alpha * (targets - values). With alpha=0.001 a step
    in the target is ~63% covered after 1000 samples.

    State lives in two float64 arrays so a JIT kernel can advance it in place.
    """

    def __init__(self, n: int = 3, alpha: float = 0.001, initial: float = 1.0):
        self.alpha = alpha
        self.initial = initial
        self.values = np.full(n, initial, dtype=np.float64)
        self.targets = np.full(n, initial, dtype=np.float64)

    def set_targets_db(self, *values_db: float):
        for i, value_db in enumerate(values_db):
            self.targets[i] = db_to_gain(value_db)

    def set_targets(self, *gains: float):
        for i, gain in enumerate(gains):
            self.targets[i] = gain

    def step(self) -> np.ndarray:
        self.values += self.alpha * (self.targets - self.values)
        return self.values

    def reset(self, value: float | None = None):
        if value is None:
            value = self.initial
        self.values[:] = value
        self.targets[:] = value
