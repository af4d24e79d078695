"""Numba-optimized SPU reverb block loop.

Same algorithm as engine/spu.py, but every piece of state is a flat numpy
array owned by the caller, so the whole block runs in JIT code without
allocating.
"""

from numba import njit

from primitives.delay_line import masked_read as rd, masked_write as wr
from psx_reverb.engine.presets import ADDRESS_REGISTERS, GAIN_REGISTERS

# Positions in RuntimeParams.offsets / .coeffs
D_APF1, D_APF2 = (ADDRESS_REGISTERS.index(r) for r in ("dAPF1", "dAPF2"))
(M_LSAME, M_RSAME, D_LSAME, D_RSAME,
 M_LDIFF, M_RDIFF, D_LDIFF, D_RDIFF) = (ADDRESS_REGISTERS.index(r) for r in (
    "mLSAME", "mRSAME", "dLSAME", "dRSAME",
    "mLDIFF", "mRDIFF", "dLDIFF", "dRDIFF"))
(M_LCOMB1, M_RCOMB1, M_LCOMB2, M_RCOMB2,
 M_LCOMB3, M_RCOMB3, M_LCOMB4, M_RCOMB4) = (ADDRESS_REGISTERS.index(r) for r in (
    "mLCOMB1", "mRCOMB1", "mLCOMB2", "mRCOMB2",
    "mLCOMB3", "mRCOMB3", "mLCOMB4", "mRCOMB4"))
M_LAPF1, M_RAPF1, M_LAPF2, M_RAPF2 = (ADDRESS_REGISTERS.index(r) for r in (
    "mLAPF1", "mRAPF1", "mLAPF2", "mRAPF2"))
(V_IIR, V_COMB1, V_COMB2, V_COMB3, V_COMB4,
 V_WALL, V_APF1, V_APF2, V_LIN, V_RIN) = (GAIN_REGISTERS.index(r) for r in (
    "vIIR", "vCOMB1", "vCOMB2", "vCOMB3", "vCOMB4",
    "vWALL", "vAPF1", "vAPF2", "vLIN", "vRIN"))


@njit(cache=True)
def process_block(
    in_l, in_r, out_l, out_r, n_frames,
    # Delay buffer state
    buf, mask, cursor,
    # Runtime parameters
    offsets, coeffs,
    # Gain smoother state: wet, dry, master
    gains, targets, alpha,
):
    d_apf1 = offsets[D_APF1]
    d_apf2 = offsets[D_APF2]
    m_lsame = offsets[M_LSAME]
    m_rsame = offsets[M_RSAME]
    d_lsame = offsets[D_LSAME]
    d_rsame = offsets[D_RSAME]
    m_ldiff = offsets[M_LDIFF]
    m_rdiff = offsets[M_RDIFF]
    d_ldiff = offsets[D_LDIFF]
    d_rdiff = offsets[D_RDIFF]
    m_lcomb1 = offsets[M_LCOMB1]
    m_rcomb1 = offsets[M_RCOMB1]
    m_lcomb2 = offsets[M_LCOMB2]
    m_rcomb2 = offsets[M_RCOMB2]
    m_lcomb3 = offsets[M_LCOMB3]
    m_rcomb3 = offsets[M_RCOMB3]
    m_lcomb4 = offsets[M_LCOMB4]
    m_rcomb4 = offsets[M_RCOMB4]
    m_lapf1 = offsets[M_LAPF1]
    m_rapf1 = offsets[M_RAPF1]
    m_lapf2 = offsets[M_LAPF2]
    m_rapf2 = offsets[M_RAPF2]

    v_iir = coeffs[V_IIR]
    v_comb1 = coeffs[V_COMB1]
    v_comb2 = coeffs[V_COMB2]
    v_comb3 = coeffs[V_COMB3]
    v_comb4 = coeffs[V_COMB4]
    v_wall = coeffs[V_WALL]
    v_apf1 = coeffs[V_APF1]
    v_apf2 = coeffs[V_APF2]
    v_lin = coeffs[V_LIN]
    v_rin = coeffs[V_RIN]

    c = cursor[0]

    for n in range(n_frames):
        # --- Gain smoothing ---
        for k in range(3):
            gains[k] += alpha * (targets[k] - gains[k])

        left = in_l[n]
        right = in_r[n]
        lin = v_lin * left
        rin = v_rin * right

        # --- Same side reflection ---
        prev = rd(buf, mask, c, m_lsame - 1)
        wr(buf, mask, c, m_lsame, (lin + rd(buf, mask, c, d_lsame) * v_wall - prev) * v_iir + prev)
        prev = rd(buf, mask, c, m_rsame - 1)
        wr(buf, mask, c, m_rsame, (rin + rd(buf, mask, c, d_rsame) * v_wall - prev) * v_iir + prev)

        # --- Different side reflection ---
        prev = rd(buf, mask, c, m_ldiff - 1)
        wr(buf, mask, c, m_ldiff, (lin + rd(buf, mask, c, d_rdiff) * v_wall - prev) * v_iir + prev)
        prev = rd(buf, mask, c, m_rdiff - 1)
        wr(buf, mask, c, m_rdiff, (rin + rd(buf, mask, c, d_ldiff) * v_wall - prev) * v_iir + prev)

        # --- Early echo ---
        lout = 0.0
        lout += v_comb1 * rd(buf, mask, c, m_lcomb1)
        lout += v_comb2 * rd(buf, mask, c, m_lcomb2)
        lout += v_comb3 * rd(buf, mask, c, m_lcomb3)
        lout += v_comb4 * rd(buf, mask, c, m_lcomb4)
        rout = 0.0
        rout += v_comb1 * rd(buf, mask, c, m_rcomb1)
        rout += v_comb2 * rd(buf, mask, c, m_rcomb2)
        rout += v_comb3 * rd(buf, mask, c, m_rcomb3)
        rout += v_comb4 * rd(buf, mask, c, m_rcomb4)

        # --- Late reverb APF1 ---
        lout -= v_apf1 * rd(buf, mask, c, m_lapf1 - d_apf1)
        wr(buf, mask, c, m_lapf1, lout)
        lout = lout * v_apf1 + rd(buf, mask, c, m_lapf1 - d_apf1)
        rout -= v_apf1 * rd(buf, mask, c, m_rapf1 - d_apf1)
        wr(buf, mask, c, m_rapf1, rout)
        rout = rout * v_apf1 + rd(buf, mask, c, m_rapf1 - d_apf1)

        # --- Late reverb APF2 ---
        lout -= v_apf2 * rd(buf, mask, c, m_lapf2 - d_apf2)
        wr(buf, mask, c, m_lapf2, lout)
        lout = lout * v_apf2 + rd(buf, mask, c, m_lapf2 - d_apf2)
        rout -= v_apf2 * rd(buf, mask, c, m_rapf2 - d_apf2)
        wr(buf, mask, c, m_rapf2, rout)
        rout = rout * v_apf2 + rd(buf, mask, c, m_rapf2 - d_apf2)

        # --- Mix (no limiting) ---
        out_l[n] = (lout * gains[0] + left * gains[1]) * gains[2]
        out_r[n] = (rout * gains[0] + right * gains[1]) * gains[2]

        c = (c + 1) & mask

    cursor[0] = c
