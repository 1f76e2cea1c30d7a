from __future__ import annotations
import logging
from dataclasses import dataclass

import numpy as np

from .constants import (
	TWOPI, MAGNITUDE_FLOOR, DB_FLOOR, DEFAULT_QL,
)
from .enclosure import Sealed, Ported
from .errors import UnreachableTarget
from .parameters import DriverParameters

logger = logging.getLogger(__name__)


def _frequencies(frequency) -> np.ndarray:
	return np.abs(np.asarray(frequency, dtype=float))

def _out(values: np.ndarray, like):
	if np.ndim(like) == 0:
		return float(values)
	return values

def magnitude_to_db(magnitude):
	"""20 log10 |H| with the magnitude clamped to the plotting floor."""
	mag = np.abs(np.asarray(magnitude))
	mag = np.where(np.isfinite(mag), mag, 0.0)
	db = np.where(mag > MAGNITUDE_FLOOR, 20.0 * np.log10(np.maximum(mag, MAGNITUDE_FLOOR)), DB_FLOOR)
	return _out(db, magnitude)


## ---------------------------------------------------------------- sealed

def sealed_magnitude(frequency, fc: float, qtc: float):
	"""|H| of the 2nd-order sealed-box high-pass (Small 1972, eq. 10)."""
	r2 = (_frequencies(frequency) / fc)**2
	mag = r2 / np.sqrt((1.0 - r2)**2 + r2 / qtc**2)
	return _out(mag, frequency)

def sealed_response_db(frequency, fc: float, qtc: float):
	"""Sealed response relative to passband level [dB]."""
	return magnitude_to_db(sealed_magnitude(frequency, fc, qtc))

def sealed_f3(fc: float, qtc: float) -> float:
	"""Exact -3 dB frequency of the sealed response."""
	t = 1.0 - 1.0 / (2.0 * qtc**2)
	return float(fc / np.sqrt(t + np.sqrt(t**2 + 1.0)))


## ---------------------------------------------------------------- vented

def vented_coefficients(alpha: float, h: float, qt: float, ql: float = DEFAULT_QL) -> tuple[float, float, float]:
	"""Denominator coefficients a1, a2, a3 of the vented-box high-pass.

	G(s) = s^4 T0^4 / (s^4 T0^4 + a1 s^3 T0^3 + a2 s^2 T0^2 + a3 s T0 + 1)
	with h = fb/fs and box losses QL (Small 1973). ql = inf is lossless.
	"""
	sh = np.sqrt(h)
	if np.isinf(ql):
		a1 = 1.0 / (sh * qt)
		a2 = (alpha + 1.0 + h**2) / h
		a3 = sh / qt
	else:
		a1 = (ql + h*qt) / (sh * ql * qt)
		a2 = (h + (alpha + 1.0 + h**2) * ql * qt) / (h * ql * qt)
		a3 = (h*ql + qt) / (sh * ql * qt)
	return float(a1), float(a2), float(a3)

def ported_response_complex(frequency, fs: float, fb: float, alpha: float, qts: float, ql: float = DEFAULT_QL):
	"""Complex vented-box transfer function G(j omega), passband = 1."""
	f = _frequencies(frequency)
	a1, a2, a3 = vented_coefficients(alpha, fb/fs, qts, ql)
	x = 1j * f / np.sqrt(fs * fb)       # s T0
	x2 = x * x
	num = x2 * x2
	den = num + a1*x2*x + a2*x2 + a3*x + 1.0
	return num / den

def ported_response_db(frequency, fs: float, fb: float, alpha: float, qts: float,
		ql: float = DEFAULT_QL, reference_hz: float | None = None):
	"""Vented response relative to the passband, or to its level at reference_hz [dB]."""
	g = np.abs(ported_response_complex(frequency, fs, fb, alpha, qts, ql))
	if reference_hz is None:
		return magnitude_to_db(_out(g, frequency))
	g_ref = np.abs(ported_response_complex(reference_hz, fs, fb, alpha, qts, ql))
	return magnitude_to_db(_out(g / max(float(g_ref), MAGNITUDE_FLOOR), frequency))

def ported_displacement_complex(frequency, fs: float, fb: float, alpha: float, qts: float, ql: float = DEFAULT_QL):
	"""Cone excursion of the vented box relative to its static value, X(0) = 1.

	X(s) = (s^2 Tb^2 + s Tb/QL + 1) / D(s) with D(s) the response
	denominator (Small 1973). The numerator vanishes at fb when QL = inf.
	"""
	f = _frequencies(frequency)
	h = fb / fs
	a1, a2, a3 = vented_coefficients(alpha, h, qts, ql)
	x = 1j * f / np.sqrt(fs * fb)       # s T0
	xb = x / np.sqrt(h)                 # s Tb
	loss = 0.0 if np.isinf(ql) else 1.0 / ql
	x2 = x * x
	den = x2*x2 + a1*x2*x + a2*x2 + a3*x + 1.0
	return (xb*xb + loss*xb + 1.0) / den

def ported_f3(fs: float, fb: float, alpha: float, qts: float, ql: float = DEFAULT_QL,
		reference_hz: float | None = None, max_iter: int = 60) -> float:
	"""Highest -3 dB crossing of the vented response.

	Steps down in 1/24 octave from well inside the passband (or from
	reference_hz) until the response falls below -3 dB, then bisects the
	last step on a log-frequency scale.
	"""
	def level(f):
		return ported_response_db(f, fs, fb, alpha, qts, ql, reference_hz)

	step = 2.0**(-1.0/24.0)
	start = 10.0 * max(fs, fb) if reference_hz is None else float(reference_hz)
	upper = start
	for _ in range(24 * 14):
		lower = upper * step
		if level(lower) < -3.0:
			break
		upper = lower
	else:
		raise UnreachableTarget(f"Vented response does not fall to -3 dB below {start:.1f} Hz.")

	lo, hi = np.log(lower), np.log(upper)
	for _ in range(max_iter):
		mid = 0.5 * (lo + hi)
		if level(np.exp(mid)) < -3.0:
			lo = mid
		else:
			hi = mid
		if hi - lo < 1e-6:
			break
	return float(np.exp(0.5 * (lo + hi)))


## ---------------------------------------------------------------- derived system values

@dataclass(frozen=True)
class SealedSystem:
	alpha: float
	qtc: float
	fc: float
	f3: float

@dataclass(frozen=True)
class PortedSystem:
	alpha: float
	h: float
	fb: float
	ql: float
	f3: float


def sealed_system(params: DriverParameters, volume_m3: float) -> SealedSystem:
	alpha = params.vas / volume_m3
	qtc = params.qts * np.sqrt(1.0 + alpha)
	fc = params.fs * np.sqrt(1.0 + alpha)
	return SealedSystem(alpha=float(alpha), qtc=float(qtc), fc=float(fc), f3=sealed_f3(fc, qtc))

def ported_system(params: DriverParameters, enclosure: Ported,
		reference_hz: float | None = None) -> PortedSystem:
	alpha = params.vas / enclosure.volume_m3
	fb = enclosure.tuning_hz
	f3 = ported_f3(params.fs, fb, alpha, params.qts, enclosure.loss_q, reference_hz)
	return PortedSystem(alpha=float(alpha), h=fb/params.fs, fb=fb, ql=enclosure.loss_q, f3=f3)

def system_parameters(params: DriverParameters, enclosure: Sealed | Ported) -> SealedSystem | PortedSystem:
	match enclosure:
		case Sealed(volume_m3=vb):
			return sealed_system(params, vb)
		case Ported():
			return ported_system(params, enclosure)
		case _:
			raise TypeError(f"Unsupported enclosure: {enclosure!r}")

def closed_form_response_db(frequency, params: DriverParameters, enclosure: Sealed | Ported,
		reference_hz: float | None = None):
	"""Closed-form response of a driver in an enclosure [dB].

	Relative to the passband level, or to the level at reference_hz when given.
	"""
	match enclosure:
		case Sealed(volume_m3=vb):
			system = sealed_system(params, vb)
			db = sealed_response_db(frequency, system.fc, system.qtc)
			if reference_hz is None:
				return db
			return db - sealed_response_db(reference_hz, system.fc, system.qtc)
		case Ported():
			alpha = params.vas / enclosure.volume_m3
			return ported_response_db(frequency, params.fs, enclosure.tuning_hz, alpha,
				params.qts, enclosure.loss_q, reference_hz)
		case _:
			raise TypeError(f"Unsupported enclosure: {enclosure!r}")
