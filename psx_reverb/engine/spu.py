"""SPU reverb filter graph, one sample at a time.

Reference version of the algorithm in numba_spu.py, written against the
DelayBuffer methods so each tap reads the way the hardware manual lists it.
Too slow for real-time work; tests use it to pin the JIT kernel down.

Signal flow (per side, L shown):

    Lin = vLIN * in
    [mLSAME] = (Lin + [dLSAME]*vWALL - [mLSAME-1]) * vIIR + [mLSAME-1]   same-side reflection
    [mLDIFF] = (Lin + [dRDIFF]*vWALL - [mLDIFF-1]) * vIIR + [mLDIFF-1]   cross reflection
    Lout = sum(vCOMBk * [mLCOMBk])                                       early echo
    Lout -> APF1 -> APF2                                                 late diffusion
    out = (Lout * wet + in * dry) * master
"""

from primitives.delay_line import DelayBuffer
from primitives.filters import GainSmoother
from psx_reverb.engine.derive import RuntimeParams

WET, DRY, MASTER = 0, 1, 2


def _reflect(buf, m, d, x, wall, iir):
    prev = buf.read(m - 1)
    buf.write(m, (x + buf.read(d) * wall - prev) * iir + prev)


def _allpass(buf, x, m, d, g):
    x -= g * buf.read(m - d)
    buf.write(m, x)
    return x * g + buf.read(m - d)


def process_sample(buf: DelayBuffer, p: RuntimeParams, smoother: GainSmoother,
                   left: float, right: float) -> tuple[float, float]:
    gains = smoother.step()

    iir = p.coeff("vIIR")
    wall = p.coeff("vWALL")
    lin = p.coeff("vLIN") * left
    rin = p.coeff("vRIN") * right

    _reflect(buf, p.offset("mLSAME"), p.offset("dLSAME"), lin, wall, iir)
    _reflect(buf, p.offset("mRSAME"), p.offset("dRSAME"), rin, wall, iir)

    _reflect(buf, p.offset("mLDIFF"), p.offset("dRDIFF"), lin, wall, iir)
    _reflect(buf, p.offset("mRDIFF"), p.offset("dLDIFF"), rin, wall, iir)

    lout = 0.0
    rout = 0.0
    for k in ("1", "2", "3", "4"):
        g = p.coeff("vCOMB" + k)
        lout += g * buf.read(p.offset("mLCOMB" + k))
        rout += g * buf.read(p.offset("mRCOMB" + k))

    for k in ("1", "2"):
        g = p.coeff("vAPF" + k)
        d = p.offset("dAPF" + k)
        lout = _allpass(buf, lout, p.offset("mLAPF" + k), d, g)
        rout = _allpass(buf, rout, p.offset("mRAPF" + k), d, g)

    out_l = (lout * gains[WET] + left * gains[DRY]) * gains[MASTER]
    out_r = (rout * gains[WET] + right * gains[DRY]) * gains[MASTER]

    buf.advance()
    return out_l, out_r
