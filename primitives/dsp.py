"""Small scalar DSP helpers shared by the engine and its tests."""

SILENCE_DB = -90.0


def db_to_gain(value_db: float) -> float:
    """Decibels to linear gain. At or below -90 dB counts as silence."""
    if value_db > SILENCE_DB:
        return 10.0 ** (value_db / 20.0)
    return 0.0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()
