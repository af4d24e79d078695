"""WAV I/O helpers for the offline renderer.

The reverb adapts itself to any sample rate, so files are loaded at their
own rate rather than resampled.
"""

import numpy as np
from scipy.io import wavfile


def load_wav(path):
    """Load a WAV file as float64, mono (samples,) or multichannel (samples, ch).

    Returns (audio_array, sample_rate).
    """
    sr, data = wavfile.read(path)
    if data.dtype == np.int16:
        audio = data.astype(np.float64) / 32768.0
    elif data.dtype == np.int32:
        audio = data.astype(np.float64) / 2147483648.0
    elif data.dtype == np.uint8:
        audio = (data.astype(np.float64) - 128.0) / 128.0
    else:
        audio = data.astype(np.float64)
    return audio, sr


def save_wav(path, audio, sr):
    """Save audio to a 16-bit WAV file, pulling peaks above full scale back in."""
    peak = np.max(np.abs(audio)) if audio.size else 0.0
    if peak > 1.0:
        audio = audio / peak * 0.95
    out = (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)
    wavfile.write(path, int(sr), out)


def make_impulse(sr, seconds=0.5, channels=1):
    """Unit impulse followed by silence."""
    n = int(sr * seconds)
    impulse = np.zeros(n) if channels == 1 else np.zeros((n, channels))
    impulse[0] = 1.0
    return impulse
