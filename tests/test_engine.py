"""Test the full SPU reverb engine.

Run: uv run python tests/test_engine.py
"""

import logging
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from psx_reverb.engine import core
from psx_reverb.engine.core import PsxReverb
from psx_reverb.engine.derive import derive_params
from psx_reverb.engine.errors import (AllocationFailure, InvalidPresetIndex,
                                      UnsupportedSampleRate)
from psx_reverb.engine.presets import OFF, PRESETS, STUDIO_LARGE


def make_noise(n, seed=0):
    rng = np.random.default_rng(seed)
    return rng.standard_normal(n) * 0.5, rng.standard_normal(n) * 0.5


def run(rev, left, right, block=512, **controls):
    out_l = np.zeros_like(left)
    out_r = np.zeros_like(right)
    for start in range(0, len(left), block):
        end = min(start + block, len(left))
        rev.process_block(left[start:end], right[start:end],
                          out_l[start:end], out_r[start:end], **controls)
    return out_l, out_r


class _Records(logging.Handler):
    def __init__(self):
        super().__init__(logging.WARNING)
        self.records = []

    def emit(self, record):
        self.records.append(record)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------
def test_construction_defaults():
    rev = PsxReverb(44100)
    assert rev.sample_rate == 44100.0
    assert rev.buffer.size() == 131072
    assert rev.preset_index == STUDIO_LARGE
    assert rev.params == derive_params(PRESETS[STUDIO_LARGE], 44100)
    assert np.all(rev.smoother.values == 1.0)
    assert not np.any(rev.buffer.samples)


def test_unsupported_sample_rates():
    for bad in (1.0, 0.5, 0, -44100, float("nan"), float("inf"), "fast", None):
        with pytest.raises(UnsupportedSampleRate):
            PsxReverb(bad)
    with pytest.raises(ValueError):
        PsxReverb(1.0)
    assert PsxReverb(2.0).buffer.size() == 8


def test_allocation_failure():
    original = core.DelayBuffer

    def no_memory(size):
        raise MemoryError(size)

    core.DelayBuffer = no_memory
    try:
        with pytest.raises(AllocationFailure):
            PsxReverb(48000)
    finally:
        core.DelayBuffer = original


def test_invalid_initial_preset():
    with pytest.raises(InvalidPresetIndex):
        PsxReverb(48000, preset_index=10)


# ---------------------------------------------------------------------------
# Preset switching
# ---------------------------------------------------------------------------
def test_preset_switch_clears_buffer():
    rev = PsxReverb(22050)
    run(rev, *make_noise(4096))
    assert np.any(rev.buffer.samples)
    silence = np.zeros(0)
    rev.process_block(silence, silence, silence, silence, preset_index=4)
    assert rev.preset_index == 4
    assert rev.params.name == "Hall"
    assert not np.any(rev.buffer.samples)


def test_float_preset_control():
    rev = PsxReverb(22050)
    silence = np.zeros(0)
    rev.process_block(silence, silence, silence, silence, preset_index=4.0)
    assert rev.preset_index == 4
    assert rev.params.name == "Hall"
    rev.process_block(silence, silence, silence, silence, preset_index=4.5)
    assert rev.preset_index == 4


def test_same_preset_does_not_clear():
    rev = PsxReverb(22050)
    run(rev, *make_noise(4096))
    before = rev.buffer.samples.copy()
    silence = np.zeros(0)
    rev.process_block(silence, silence, silence, silence, preset_index=STUDIO_LARGE)
    assert np.array_equal(rev.buffer.samples, before)


def test_load_preset_twice_is_identical():
    rev = PsxReverb(48000)
    first = rev.load_preset(6)
    run(rev, *make_noise(2048))
    second = rev.load_preset(6)
    assert first == second
    assert not np.any(rev.buffer.samples)


def test_invalid_preset_is_a_no_op():
    rev = PsxReverb(22050)
    run(rev, *make_noise(4096))
    samples = rev.buffer.samples.copy()
    cursor = rev.buffer.cursor
    params = rev.params

    with pytest.raises(InvalidPresetIndex):
        rev.load_preset(999)
    silence = np.zeros(0)
    rev.process_block(silence, silence, silence, silence, preset_index=999)

    assert rev.preset_index == STUDIO_LARGE
    assert rev.params is params
    assert rev.buffer.cursor == cursor
    assert rev.buffer.samples.tobytes() == samples.tobytes()


def test_invalid_preset_reported_once_per_value():
    rev = PsxReverb(22050)
    handler = _Records()
    logger = logging.getLogger("psx_reverb.engine.core")
    logger.addHandler(handler)
    try:
        for _ in range(5):
            assert rev.select_preset(999) is False
        assert len(handler.records) == 1
        rev.select_preset(998)
        assert len(handler.records) == 2
        # Back to the active preset: nothing to load, nothing to report
        assert rev.select_preset(STUDIO_LARGE) is False
        assert rev.select_preset(2) is True
        assert len(handler.records) == 2
    finally:
        logger.removeHandler(handler)


# ---------------------------------------------------------------------------
# Audio behaviour
# ---------------------------------------------------------------------------
def test_silence_in_silence_out():
    rev = PsxReverb(22050)
    n = 2 * rev.buffer.size()
    zeros = np.zeros(n)
    for index in range(len(PRESETS)):
        rev.load_preset(index)
        out_l, out_r = run(rev, zeros, zeros, block=4096)
        assert not np.any(out_l), PRESETS[index].name
        assert not np.any(out_r), PRESETS[index].name


def test_off_preset_is_dry_only():
    rev = PsxReverb(44100, preset_index=OFF)
    impulse = np.zeros(4096)
    impulse[0] = 1.0
    out_l, out_r = run(rev, impulse, impulse * 0.5, wet_gain_db=0.0, dry_gain_db=0.0)
    assert np.allclose(out_l, impulse)
    assert np.allclose(out_r, impulse * 0.5)


def test_reverb_adds_a_tail():
    rev = PsxReverb(44100)
    impulse = np.zeros(44100)
    impulse[0] = 1.0
    out_l, out_r = run(rev, impulse, impulse)
    assert np.all(np.isfinite(out_l)) and np.all(np.isfinite(out_r))
    assert np.max(np.abs(out_l[1000:])) > 1e-4
    assert np.max(np.abs(out_r[1000:])) > 1e-4


def test_wet_gain_smoothing():
    rev = PsxReverb(22050)
    zeros = np.zeros(1000)
    run(rev, zeros, zeros, block=250, wet_gain_db=-90.0)
    assert abs(rev.smoother.values[0] - 0.999 ** 1000) < 1e-9
    assert rev.smoother.values[1] == 1.0
    assert rev.smoother.values[2] == 1.0


def test_output_is_not_limited():
    rev = PsxReverb(22050, preset_index=OFF)
    loud = np.full(10000, 0.9)
    out_l, _ = run(rev, loud, loud, master_gain_db=12.0)
    assert out_l[-1] > 3.0


def test_block_size_does_not_matter():
    left, right = make_noise(5000, seed=3)
    a = run(PsxReverb(32000, preset_index=4), left, right, block=5000, wet_gain_db=-3.0)
    b = run(PsxReverb(32000, preset_index=4), left, right, block=97, wet_gain_db=-3.0)
    assert np.array_equal(a[0], b[0])
    assert np.array_equal(a[1], b[1])


def test_jit_matches_reference():
    left, right = make_noise(1500, seed=7)
    controls = dict(wet_gain_db=-3.0, dry_gain_db=-6.0, master_gain_db=-1.0)
    for index in (0, 1, 5, 7, OFF):
        fast = PsxReverb(32000, preset_index=index)
        out_l, out_r = run(fast, left, right, block=256, **controls)

        ref = PsxReverb(32000, preset_index=index)
        ref.smoother.set_targets_db(*controls.values())
        ref_l = np.zeros_like(left)
        ref_r = np.zeros_like(right)
        for i in range(len(left)):
            ref_l[i], ref_r[i] = ref.process_sample(left[i], right[i])

        name = PRESETS[index].name
        assert np.allclose(out_l, ref_l, rtol=1e-12, atol=1e-15), name
        assert np.allclose(out_r, ref_r, rtol=1e-12, atol=1e-15), name
        assert np.allclose(fast.buffer.samples, ref.buffer.samples, rtol=1e-12, atol=1e-15), name
        assert fast.buffer.cursor == ref.buffer.cursor == len(left)


def test_in_place_processing():
    left, right = make_noise(2048, seed=11)
    expected = run(PsxReverb(44100), left, right)
    rev = PsxReverb(44100)
    buf_l, buf_r = left.copy(), right.copy()
    rev.process_block(buf_l, buf_r, buf_l, buf_r)
    assert np.array_equal(buf_l, expected[0])
    assert np.array_equal(buf_r, expected[1])


def test_short_buffers_rejected():
    rev = PsxReverb(44100)
    a = np.zeros(64)
    with pytest.raises(ValueError):
        rev.process_block(a, a, np.zeros(32), a)
    with pytest.raises(ValueError):
        rev.process_block(a, a, a, a, n_frames=65)


def test_reset():
    rev = PsxReverb(22050, preset_index=4)
    run(rev, *make_noise(3000), wet_gain_db=-20.0)
    rev.reset()
    assert rev.preset_index == 4
    assert rev.buffer.cursor == 0
    assert not np.any(rev.buffer.samples)
    assert np.all(rev.smoother.values == 1.0)


if __name__ == "__main__":
    test_construction_defaults()
    test_unsupported_sample_rates()
    test_allocation_failure()
    test_invalid_initial_preset()
    test_preset_switch_clears_buffer()
    test_float_preset_control()
    test_same_preset_does_not_clear()
    test_load_preset_twice_is_identical()
    test_invalid_preset_is_a_no_op()
    test_invalid_preset_reported_once_per_value()
    test_silence_in_silence_out()
    test_off_preset_is_dry_only()
    test_reverb_adds_a_tail()
    test_wet_gain_smoothing()
    test_output_is_not_limited()
    test_block_size_does_not_matter()
    test_jit_matches_reference()
    test_in_place_processing()
    test_short_buffers_rejected()
    test_reset()
    print("Done!")
