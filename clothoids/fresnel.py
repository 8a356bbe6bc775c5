"""
Fresnel integrals and the generalized (moment) Fresnel integrals used to
evaluate clothoids.

    C(x) = int_0^x cos(pi/2 t^2) dt          S(x) = int_0^x sin(pi/2 t^2) dt

    X_k(a, b, c) = int_0^1 t^k cos(a/2 t^2 + b t + c) dt
    Y_k(a, b, c) = int_0^1 t^k sin(a/2 t^2 + b t + c) dt

A point of the clothoid (x0, y0, theta0, k, dk) at arc length s is
(x0 + s*X_0(dk*s^2, k*s, theta0), y0 + s*Y_0(dk*s^2, k*s, theta0)).

For |a| small the closed form through C and S cancels catastrophically, so
the moments are expanded in powers of `a` around the a = 0 moments, which are
computed by recurrence (stable while k < |b|) and by reduced Lommel functions
above that.
"""

import math
from typing import List, Tuple

import numpy as np


# Below _A_THRESHOLD the moments are a series in `a`; the closed form
# cancels badly for small |a| and large |b|.
_A_THRESHOLD = 1.0


def _series_size(a: float) -> int:
    """Terms of the series in `a` for a truncation error below 1e-18."""
    return 3 if abs(a) < 0.01 else 7


# Rational approximations of the auxiliary functions f and g, 1 <= x < 6.
_FN = (
    0.49999988085884732562,
    1.3511177791210715095,
    1.3175407836168659241,
    1.1861149300293854992,
    0.7709627298888346769,
    0.4173874338787963957,
    0.19044202705272903923,
    0.06655998896627697537,
    0.022789258616785717418,
    0.0040116689358507943804,
    0.0012192036851249883877,
)
_FD = (
    1.0,
    2.7022305772400260215,
    4.2059268151438492767,
    4.5221882840107715516,
    3.7240352281630359588,
    2.4589286254678152943,
    1.3125491629443702962,
    0.5997685720120932908,
    0.20907680750378849485,
    0.07159621634657901433,
    0.012602969513793714191,
    0.0038302423512931250065,
)
_GN = (
    0.50000014392706344801,
    0.032346434925349128728,
    0.17619325157863254363,
    0.038606273170706486252,
    0.023693692309257725361,
    0.007092018516845033662,
    0.0012492123212412087428,
    0.00044023040894778468486,
    -8.80266827476172521e-6,
    -1.4033554916580018648e-8,
    2.3509221782155474353e-10,
)
_GD = (
    1.0,
    2.0646987497019598937,
    2.9109311766948031235,
    2.6561936751333032911,
    2.0195563983177268073,
    1.1167891129189363902,
    0.57267874755973172715,
    0.19408481169593070798,
    0.07634808341431248904,
    0.011573247407207865977,
    0.0044099273693067311209,
    -0.00009070958410429993314,
)

_EPS = 1e-17
_ASYMPTOTIC_EPS = 1e-24


def _rational(num: Tuple[float, ...], den: Tuple[float, ...], x: float) -> float:
    sumn = 0.0
    sumd = den[11]
    for k in range(10, -1, -1):
        sumn = num[k] + x * sumn
        sumd = den[k] + x * sumd
    return sumn / sumd


def _asymptotic(t: float, shift: float) -> float:
    """Divergent asymptotic series, truncated at its smallest term."""
    numterm = -1.0
    term = 1.0
    total = 1.0
    oldterm = 1.0
    ratio = 10.0
    while ratio > _ASYMPTOTIC_EPS:
        numterm += 4.0
        term *= numterm * (numterm + shift) * t
        total += term
        absterm = abs(term)
        ratio = abs(term / total)
        if oldterm < absterm:
            break
        oldterm = absterm
    return total


def _fresnel_scalar(y: float) -> Tuple[float, float]:
    x = abs(y)
    if x < 1.0:
        t = -((math.pi / 2.0) * x * x) ** 2

        # cosine integral series
        twofn = 0.0
        fact = 1.0
        denterm = 1.0
        numterm = 1.0
        total = 1.0
        ratio = 10.0
        while ratio > _EPS:
            twofn += 2.0
            fact *= twofn * (twofn - 1.0)
            denterm += 4.0
            numterm *= t
            term = numterm / (fact * denterm)
            total += term
            ratio = abs(term / total)
        c = x * total

        # sine integral series
        twofn = 1.0
        fact = 1.0
        denterm = 3.0
        numterm = 1.0
        total = 1.0 / 3.0
        ratio = 10.0
        while ratio > _EPS:
            twofn += 2.0
            fact *= twofn * (twofn - 1.0)
            denterm += 4.0
            numterm *= t
            term = numterm / (fact * denterm)
            total += term
            ratio = abs(term / total)
        s = (math.pi / 2.0) * total * x * x * x
    else:
        if x < 6.0:
            f = _rational(_FN, _FD, x)
            g = _rational(_GN, _GD, x)
        else:
            t = -1.0 / (math.pi * x * x) ** 2
            f = _asymptotic(t, -2.0) / (math.pi * x)
            fac = math.pi * x
            g = _asymptotic(t, 2.0) / (fac * fac * x)
        u = (math.pi / 2.0) * x * x
        sin_u = math.sin(u)
        cos_u = math.cos(u)
        c = 0.5 + f * sin_u - g * cos_u
        s = 0.5 - f * cos_u - g * sin_u
    if y < 0.0:
        return -c, -s
    return c, s


def fresnel_cs(x):
    """
    Fresnel integrals (C(x), S(x)).

    Scalars give a pair of floats; array-likes give a pair of arrays with the
    input's shape.
    """
    if np.ndim(x) == 0:
        return _fresnel_scalar(float(x))
    xs = np.asarray(x, dtype=float)
    out = np.array([_fresnel_scalar(v) for v in xs.ravel()], dtype=float).reshape(xs.shape + (2,))
    return out[..., 0], out[..., 1]


def fresnel_cs_derivatives(nk: int, x: float) -> Tuple[List[float], List[float]]:
    """
    Fresnel integrals and their derivatives up to order nk-1 (nk <= 3).

    C[1] = cos(pi/2 x^2), C[2] = -pi x sin(pi/2 x^2), likewise for S.
    """
    _check_nk(nk)
    c0, s0 = _fresnel_scalar(x)
    C = [c0]
    S = [s0]
    if nk > 1:
        u = (math.pi / 2.0) * x * x
        cu = math.cos(u)
        su = math.sin(u)
        C.append(cu)
        S.append(su)
        if nk > 2:
            C.append(-math.pi * x * su)
            S.append(math.pi * x * cu)
    return C, S


def _fresnel_moments(nk: int, t: float) -> Tuple[List[float], List[float]]:
    """int_0^t tau^k cos(pi/2 tau^2) d tau (and sine) for k < nk."""
    c0, s0 = _fresnel_scalar(t)
    C = [c0]
    S = [s0]
    if nk > 1:
        tt = (math.pi / 2.0) * t * t
        ss = math.sin(tt)
        cc = math.cos(tt)
        C.append(ss / math.pi)
        S.append((1.0 - cc) / math.pi)
        if nk > 2:
            C.append((t * ss - s0) / math.pi)
            S.append((c0 - t * cc) / math.pi)
    return C, S


def lommel_reduced(mu: float, nu: float, z: float) -> float:
    """
    Reduced Lommel function s_{mu,nu}(z) / z^(mu+1), by its power series.

    Only used for moderate |z| (|z| < nk/2 in the moment recurrence), where the
    series converges quickly.
    """
    tmp = 1.0 / ((mu + nu + 1.0) * (mu - nu + 1.0))
    res = tmp
    for n in range(1, 101):
        tmp *= (-z / (2 * n + mu - nu + 1.0)) * (z / (2 * n + mu + nu + 1.0))
        res += tmp
        if abs(tmp) < abs(res) * _EPS:
            break
    return res


def _eval_xy_a_large(nk: int, a: float, b: float) -> Tuple[List[float], List[float]]:
    s = 1.0 if a > 0.0 else -1.0
    absa = abs(a)
    z = math.sqrt(absa / math.pi)
    ell = s * b / math.sqrt(math.pi * absa)
    g = -0.5 * s * (b * b) / absa
    cg = math.cos(g) / z
    sg = math.sin(g) / z

    Cl, Sl = _fresnel_moments(nk, ell)
    Cz, Sz = _fresnel_moments(nk, ell + z)

    dC0 = Cz[0] - Cl[0]
    dS0 = Sz[0] - Sl[0]
    X = [cg * dC0 - s * sg * dS0]
    Y = [sg * dC0 + s * cg * dS0]
    if nk > 1:
        cg /= z
        sg /= z
        dC1 = Cz[1] - Cl[1]
        dS1 = Sz[1] - Sl[1]
        DC = dC1 - ell * dC0
        DS = dS1 - ell * dS0
        X.append(cg * DC - s * sg * DS)
        Y.append(sg * DC + s * cg * DS)
        if nk > 2:
            dC2 = Cz[2] - Cl[2]
            dS2 = Sz[2] - Sl[2]
            DC = dC2 + ell * (ell * dC0 - 2.0 * dC1)
            DS = dS2 + ell * (ell * dS0 - 2.0 * dS1)
            cg /= z
            sg /= z
            X.append(cg * DC - s * sg * DS)
            Y.append(sg * DC + s * cg * DS)
    return X, Y


def _eval_xy_a_zero(nk: int, b: float) -> Tuple[List[float], List[float]]:
    """Moments int_0^1 t^k cos(b t) dt and int_0^1 t^k sin(b t) dt."""
    sb = math.sin(b)
    cb = math.cos(b)
    b2 = b * b
    X = [0.0] * nk
    Y = [0.0] * nk
    if abs(b) < 1e-3:
        X[0] = 1.0 - (b2 / 6.0) * (1.0 - (b2 / 20.0) * (1.0 - (b2 / 42.0)))
        Y[0] = (b / 2.0) * (1.0 - (b2 / 12.0) * (1.0 - (b2 / 30.0)))
    else:
        X[0] = sb / b
        Y[0] = (1.0 - cb) / b

    # forward recurrence is stable while k < |b|
    m = int(math.floor(2.0 * abs(b)))
    m = max(1, min(m, nk - 1))
    for k in range(1, m):
        X[k] = (sb - k * Y[k - 1]) / b
        Y[k] = (k * X[k - 1] - cb) / b

    if m < nk:
        A = b * sb
        D = sb - b * cb
        B = b * D
        C = -b2 * sb
        rLa = lommel_reduced(m + 0.5, 1.5, b)
        rLd = lommel_reduced(m + 0.5, 0.5, b)
        for k in range(m, nk):
            rLb = lommel_reduced(k + 1.5, 0.5, b)
            rLc = lommel_reduced(k + 1.5, 1.5, b)
            X[k] = (k * A * rLa + B * rLb + cb) / (1.0 + k)
            Y[k] = (C * rLc + sb) / (2.0 + k) + D * rLd
            rLa = rLc
            rLd = rLb
    return X, Y


def _eval_xy_a_small(nk: int, a: float, b: float, p: int) -> Tuple[List[float], List[float]]:
    """Series in `a` around the a = 0 moments."""
    X0, Y0 = _eval_xy_a_zero(nk + 4 * p + 2, b)

    half_a = a / 2.0
    X = [X0[j] - half_a * Y0[j + 2] for j in range(nk)]
    Y = [Y0[j] + half_a * X0[j + 2] for j in range(nk)]

    t = 1.0
    aa = -a * a / 4.0
    for n in range(1, p + 1):
        t *= aa / (2 * n * (2 * n - 1))
        bf = a / (4 * n + 2)
        for j in range(nk):
            jj = 4 * n + j
            X[j] += t * (X0[jj] - bf * Y0[jj + 2])
            Y[j] += t * (Y0[jj] + bf * X0[jj + 2])
    return X, Y


def _check_nk(nk: int) -> None:
    if nk < 1 or nk > 3:
        raise ValueError(f"nk must be in 1..3, got {nk}")


def generalized_fresnel_cs(nk: int, a: float, b: float, c: float) -> Tuple[List[float], List[float]]:
    """
    Moments X_k, Y_k of cos/sin(a/2 t^2 + b t + c) over [0, 1] for k < nk (nk <= 3).

    Returns (intC, intS) lists of length nk.
    """
    _check_nk(nk)
    if abs(a) < _A_THRESHOLD:
        X, Y = _eval_xy_a_small(nk, a, b, _series_size(a))
    else:
        X, Y = _eval_xy_a_large(nk, a, b)

    cosc = math.cos(c)
    sinc = math.sin(c)
    intC = [xx * cosc - yy * sinc for xx, yy in zip(X, Y)]
    intS = [xx * sinc + yy * cosc for xx, yy in zip(X, Y)]
    return intC, intS


def generalized_fresnel_cs1(a: float, b: float, c: float) -> Tuple[float, float]:
    """X_0 and Y_0 only; the form used by curve evaluation."""
    if abs(a) < _A_THRESHOLD:
        X, Y = _eval_xy_a_small(1, a, b, _series_size(a))
    else:
        X, Y = _eval_xy_a_large(1, a, b)
    cosc = math.cos(c)
    sinc = math.sin(c)
    return X[0] * cosc - Y[0] * sinc, X[0] * sinc + Y[0] * cosc
