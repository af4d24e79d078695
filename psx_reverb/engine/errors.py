"""Errors raised by the reverb engine."""


class PsxReverbError(Exception):
    """Base error for the reverb engine."""


class UnsupportedSampleRate(PsxReverbError, ValueError):
    """Sample rate is not above 1 Hz (or is not a finite number)."""

    def __init__(self, sample_rate):
        super().__init__(f"unsupported sample rate: {sample_rate!r}")
        self.sample_rate = sample_rate


class AllocationFailure(PsxReverbError, MemoryError):
    """The delay buffer could not be allocated."""


class InvalidPresetIndex(PsxReverbError, IndexError):
    """Preset selector outside the catalog."""

    def __init__(self, index, count):
        super().__init__(f"preset index {index!r} out of range [0, {count})")
        self.index = index
        self.count = count
