"""SPU reverb engine and the offline render entry point."""

import logging
import math
import time

import numpy as np

from primitives.delay_line import DelayBuffer, required_size
from primitives.filters import GainSmoother
from psx_reverb.engine import spu
from psx_reverb.engine.derive import RuntimeParams, derive_params
from psx_reverb.engine.errors import (AllocationFailure, InvalidPresetIndex,
                                      UnsupportedSampleRate)
from psx_reverb.engine.numba_spu import process_block as _process_block
from psx_reverb.engine.params import (DEFAULT_PRESET, NATIVE_SR, SCHEMA, SMOOTHING_ALPHA)
from psx_reverb.engine.presets import (ADDRESS_REGISTERS, GAIN_REGISTERS,
                                       LONGEST_PRESET_SAMPLES, lookup_preset)

log = logging.getLogger(__name__)


class PsxReverb:
    """SPU reverb, one instance per stream.

    Lifecycle:
        rev = PsxReverb(48000)                 # sizes the buffer, loads Studio Large
        rev.process_block(l_in, r_in, l_out, r_out,
                          wet_gain_db=-6.0, preset_index=4)
        rev.reset()                            # between sessions

    The delay buffer is allocated once, sized for the longest preset at the
    instance's rate. A preset switch is sampled at the start of a block and
    holds for the whole block. Processing is not thread-safe; the caller
    serialises all calls on one instance.
    """

    def __init__(self, sample_rate: float, preset_index: int = DEFAULT_PRESET):
        try:
            sample_rate = float(sample_rate)
        except (TypeError, ValueError):
            raise UnsupportedSampleRate(sample_rate) from None
        if not math.isfinite(sample_rate) or sample_rate <= 1.0:
            raise UnsupportedSampleRate(sample_rate)
        self.sample_rate = sample_rate

        size = required_size(LONGEST_PRESET_SAMPLES, sample_rate, NATIVE_SR)
        try:
            self.buffer = DelayBuffer(size)
        except (MemoryError, ValueError) as exc:
            raise AllocationFailure(
                f"cannot allocate {size}-sample delay buffer at {sample_rate:.0f} Hz") from exc

        self.smoother = GainSmoother(n=3, alpha=SMOOTHING_ALPHA, initial=1.0)
        self._offsets = np.zeros(len(ADDRESS_REGISTERS), dtype=np.int64)
        self._coeffs = np.zeros(len(GAIN_REGISTERS), dtype=np.float64)
        self._cursor = np.zeros(1, dtype=np.int64)
        self.params: RuntimeParams | None = None
        self.preset_index = None
        self._requested = None

        self.load_preset(preset_index)
        log.debug("PsxReverb @ %.0f Hz, delay buffer %d samples", sample_rate, size)

    # ── Presets ───────────────────────────────────────────────────────

    def load_preset(self, index) -> RuntimeParams:
        """Make preset `index` active: derive its parameters and clear the buffer.

        Raises InvalidPresetIndex without touching any state.
        """
        preset = lookup_preset(index)
        params = derive_params(preset, self.sample_rate)
        self.buffer.clear()
        self.params = params
        self._offsets[:] = params.offsets
        self._coeffs[:] = params.coeffs
        self.preset_index = int(index)
        self._requested = self.preset_index
        log.debug("loaded preset %d (%s)", self.preset_index, preset.name)
        return params

    def select_preset(self, index) -> bool:
        """Polling form of load_preset for host control values.

        Does nothing while `index` is unchanged since the last call. An
        invalid value is logged once and then ignored until it changes;
        the active preset keeps running. Returns True when a preset was loaded.
        """
        if index == self._requested:
            return False
        self._requested = index
        if index == self.preset_index:
            return False
        try:
            self.load_preset(index)
        except InvalidPresetIndex as exc:
            log.warning("%s; keeping preset %d", exc, self.preset_index)
            return False
        return True

    def reset(self):
        """Silence the reverb tail and start over with the active preset."""
        self.buffer.reset()
        self._cursor[0] = 0
        self.smoother.reset()
        self.load_preset(self.preset_index)

    # ── Processing ────────────────────────────────────────────────────

    def process_block(self, left_in, right_in, left_out, right_out, n_frames=None, *,
                      wet_gain_db=0.0, dry_gain_db=0.0, master_gain_db=0.0,
                      preset_index=None):
        """Process `n_frames` stereo frames from the input arrays into the output arrays.

        Outputs may alias the inputs. Gains are in dB; -90 and below is silence.
        """
        if n_frames is None:
            n_frames = len(left_in)
        if min(len(left_in), len(right_in), len(left_out), len(right_out)) < n_frames:
            raise ValueError(f"buffers shorter than n_frames={n_frames}")

        if preset_index is not None:
            self.select_preset(preset_index)
        self.smoother.set_targets_db(wet_gain_db, dry_gain_db, master_gain_db)

        if n_frames == 0:
            return
        self._cursor[0] = self.buffer.cursor
        _process_block(
            left_in, right_in, left_out, right_out, n_frames,
            self.buffer.samples, self.buffer.mask, self._cursor,
            self._offsets, self._coeffs,
            self.smoother.values, self.smoother.targets, self.smoother.alpha,
        )
        self.buffer.cursor = int(self._cursor[0])

    def process_sample(self, left: float, right: float) -> tuple[float, float]:
        """Reference (pure Python) path for a single frame, using current targets."""
        return spu.process_sample(self.buffer, self.params, self.smoother, left, right)


def render_psx(input_audio: np.ndarray, params: dict, sample_rate: float,
               chunk_callback=None, chunk_size=4096) -> np.ndarray:
    """Offline entry point: run a whole signal through a fresh engine.

    Args:
        input_audio: float array -- mono (samples,) or stereo (samples, 2)
        params: control dict (see engine/params.py); missing keys use defaults
        sample_rate: rate of `input_audio`
        chunk_callback: if provided, called with each rendered (chunk, 2) block.
            Return True to continue, False to stop early.
        chunk_size: frames per block

    Returns:
        stereo output (samples, 2)
    """
    t0 = time.perf_counter()
    controls = SCHEMA.resolve(params)
    n_samples = input_audio.shape[0]

    if input_audio.ndim == 2:
        left = np.ascontiguousarray(input_audio[:, 0], dtype=np.float64)
        right = np.ascontiguousarray(
            input_audio[:, 1] if input_audio.shape[1] > 1 else input_audio[:, 0],
            dtype=np.float64)
    else:
        left = np.ascontiguousarray(input_audio, dtype=np.float64)
        right = left

    rev = PsxReverb(sample_rate, preset_index=controls["preset_index"])
    out_l = np.zeros(n_samples)
    out_r = np.zeros(n_samples)
    gains = dict(wet_gain_db=controls["wet_gain_db"],
                 dry_gain_db=controls["dry_gain_db"],
                 master_gain_db=controls["master_gain_db"])

    for start in range(0, n_samples, chunk_size):
        end = min(start + chunk_size, n_samples)
        rev.process_block(left[start:end], right[start:end],
                          out_l[start:end], out_r[start:end], **gains)
        if chunk_callback is not None:
            if not chunk_callback(np.column_stack([out_l[start:end], out_r[start:end]])):
                n_samples = end
                break

    result = np.column_stack([out_l[:n_samples], out_r[:n_samples]])
    elapsed = time.perf_counter() - t0
    duration = n_samples / sample_rate
    rtf = duration / elapsed if elapsed > 0 else float('inf')
    log.info("render %.1fs audio in %.3fs (numba, %s, %.0fx RT)",
             duration, elapsed, rev.params.name, rtf)
    return result
