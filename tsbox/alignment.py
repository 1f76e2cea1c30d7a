from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy.optimize import least_squares
from scipy.signal import buttap, cheb1ap

from .constants import DEFAULT_QL
from .enclosure import Sealed, Ported
from .errors import InfeasibleAlignment, UnreachableTarget
from .parameters import DriverParameters
from .transfer import sealed_f3, ported_f3, vented_coefficients

logger = logging.getLogger(__name__)


## sealed, named

BUTTERWORTH = 1.0 / np.sqrt(2.0)
BESSEL = 0.577
CHEBYSHEV = 1.0

SEALED_ALIGNMENTS = {
	"bessel": BESSEL,
	"butterworth": BUTTERWORTH,
	"chebyshev": CHEBYSHEV,
}


@dataclass(frozen=True)
class AlignmentResult:
	name: str
	volume_m3: float
	alpha: float
	f3_hz: float
	qtc: float | None = None         # sealed only
	tuning_hz: float | None = None   # ported only
	ripple_db: float | None = None   # C4 only
	validated: bool = True

	@property
	def ported(self) -> bool:
		return self.tuning_hz is not None

	def enclosure(self, port_area_m2: float | None = None, loss_q: float = DEFAULT_QL) -> Sealed | Ported:
		if self.tuning_hz is None:
			return Sealed(self.volume_m3)
		if port_area_m2 is None:
			raise ValueError(f"Alignment '{self.name}' is vented; a port area is required.")
		return Ported.from_tuning(self.volume_m3, self.tuning_hz, port_area_m2, loss_q)


def find_volume_for_qtc(qts: float, vas: float, target_qtc: float) -> float:
	"""Box volume giving a sealed system Q of target_qtc [m^3]."""
	if target_qtc <= qts:
		raise InfeasibleAlignment(
			f"Qtc {target_qtc:.3f} is not reachable with Qts {qts:.3f}: "
			"a sealed box can only raise the system Q."
		)
	return float(vas / ((target_qtc / qts)**2 - 1.0))

def sealed_alignment(params: DriverParameters, target_qtc: float, name: str | None = None) -> AlignmentResult:
	volume = find_volume_for_qtc(params.qts, params.vas, target_qtc)
	alpha = params.vas / volume
	fc = params.fs * np.sqrt(1.0 + alpha)
	return AlignmentResult(
		name=name or f"Qtc {target_qtc:.3f}",
		volume_m3=volume,
		alpha=float(alpha),
		f3_hz=sealed_f3(fc, target_qtc),
		qtc=float(target_qtc),
	)

def named_sealed_alignment(params: DriverParameters, name: str) -> AlignmentResult:
	key = name.lower().strip()
	if key not in SEALED_ALIGNMENTS:
		raise ValueError(f"Unknown sealed alignment '{name}'. Use one of: {', '.join(SEALED_ALIGNMENTS)}")
	return sealed_alignment(params, SEALED_ALIGNMENTS[key], name=key.capitalize())

def sealed_alignments(params: DriverParameters) -> list[AlignmentResult]:
	"""All named sealed alignments achievable with this driver, largest box first."""
	out = []
	for key in SEALED_ALIGNMENTS:
		try:
			out.append(named_sealed_alignment(params, key))
		except InfeasibleAlignment as e:
			logger.debug("Skipping %s: %s", key, e)
	return sorted(out, key=lambda a: a.volume_m3, reverse=True)


## ported

def qb3_alignment(qts: float, vas: float, fs: float) -> AlignmentResult:
	"""Quasi-Butterworth 3rd order: empirical volume, tuned to fs."""
	volume = 15.0 * qts**3.3 * vas
	alpha = vas / volume
	return AlignmentResult(
		name="QB3",
		volume_m3=float(volume),
		alpha=float(alpha),
		f3_hz=ported_f3(fs, fs, alpha, qts, DEFAULT_QL),
		tuning_hz=fs,
	)

def ported_alignments(params: DriverParameters) -> list[AlignmentResult]:
	return [qb3_alignment(params.qts, params.vas, params.fs)]


def butterworth_coefficients() -> tuple[float, float, float]:
	"""a1, a2, a3 of the 4th-order Butterworth high-pass."""
	return _prototype_coefficients(buttap(4)[1])

def chebyshev_coefficients(ripple_db: float) -> tuple[float, float, float]:
	"""a1, a2, a3 of the 4th-order Chebyshev-I high-pass, unit constant term."""
	return _prototype_coefficients(cheb1ap(4, ripple_db)[1])

def _prototype_coefficients(lowpass_poles) -> tuple[float, float, float]:
	# high-pass poles are the inverses of the low-pass poles
	c = np.real(np.poly(1.0 / np.asarray(lowpass_poles)))
	k = c[4]**0.25
	return float(c[1]/k), float(c[2]/k**2), float(c[3]/k**3)


def _fit_vented(name: str, qt: float, ql: float, target: Callable,
		x0: list[float], lower: list[float], upper: list[float], tolerance: float) -> tuple[np.ndarray, float]:
	def residual(x):
		alpha, h = np.exp(x[0]), np.exp(x[1])
		want = np.asarray(target(x))
		have = np.asarray(vented_coefficients(alpha, h, qt, ql))
		return (have - want) / want

	fit = least_squares(residual, x0, bounds=(lower, upper))
	worst = float(np.max(np.abs(fit.fun)))
	if worst > tolerance:
		raise InfeasibleAlignment(
			f"{name} is not achievable with Qts {qt:.3f} "
			f"(best fit deviates {worst:.1%} from the target polynomial)."
		)
	logger.warning("%s alignment has not been validated against published alignment tables.", name)
	return fit.x, worst

def b4_alignment(qts: float, vas: float, fs: float, ql: float = np.inf, tolerance: float = 0.01) -> AlignmentResult:
	"""4th-order Butterworth vented alignment (unvalidated)."""
	target = butterworth_coefficients()
	x, _ = _fit_vented("B4", qts, ql, lambda x: target,
		x0=[0.0, 0.0], lower=[np.log(0.01), np.log(0.2)], upper=[np.log(100.0), np.log(5.0)],
		tolerance=tolerance)
	alpha, h = float(np.exp(x[0])), float(np.exp(x[1]))
	return AlignmentResult(
		name="B4", volume_m3=vas/alpha, alpha=alpha,
		f3_hz=ported_f3(fs, h*fs, alpha, qts, ql), tuning_hz=h*fs, validated=False,
	)

def c4_alignment(qts: float, vas: float, fs: float, ql: float = np.inf, tolerance: float = 0.01) -> AlignmentResult:
	"""4th-order Chebyshev vented alignment, ripple fitted (unvalidated)."""
	x, _ = _fit_vented("C4", qts, ql, lambda x: chebyshev_coefficients(x[2]),
		x0=[0.0, 0.0, 0.5], lower=[np.log(0.01), np.log(0.2), 1e-3], upper=[np.log(100.0), np.log(5.0), 3.0],
		tolerance=tolerance)
	alpha, h, ripple = float(np.exp(x[0])), float(np.exp(x[1])), float(x[2])
	return AlignmentResult(
		name="C4", volume_m3=vas/alpha, alpha=alpha,
		f3_hz=ported_f3(fs, h*fs, alpha, qts, ql), tuning_hz=h*fs, ripple_db=ripple, validated=False,
	)


## target F3

@dataclass(frozen=True)
class Converged:
	value: float
	iterations: int

@dataclass(frozen=True)
class Exhausted:
	best: float | None
	iterations: int

def bisect(func: Callable[[float], float], lo: float, hi: float, target: float,
		tolerance: float, max_iter: int = 30) -> Converged | Exhausted:
	"""Bounded bisection for func(x) == target on a monotone bracket."""
	f_lo, f_hi = func(lo) - target, func(hi) - target
	if abs(f_lo) <= tolerance:
		return Converged(lo, 0)
	if abs(f_hi) <= tolerance:
		return Converged(hi, 0)
	if f_lo * f_hi > 0:
		return Exhausted(None, 0)
	best = lo if abs(f_lo) < abs(f_hi) else hi
	best_err = min(abs(f_lo), abs(f_hi))
	for i in range(1, max_iter + 1):
		mid = 0.5 * (lo + hi)
		f_mid = func(mid) - target
		logger.debug("bisect %d: x=%.6g err=%.4g", i, mid, f_mid)
		if abs(f_mid) <= tolerance:
			return Converged(mid, i)
		if abs(f_mid) < best_err:
			best, best_err = mid, abs(f_mid)
		if f_lo * f_mid < 0:
			hi = mid
		else:
			lo, f_lo = mid, f_mid
	return Exhausted(best, max_iter)


def find_volume_for_f3(params: DriverParameters, target_f3_hz: float,
		tolerance_hz: float = 0.5, max_iter: int = 30) -> Sealed:
	"""Sealed box whose -3 dB point is target_f3_hz.

	f3(Qtc) has its minimum near Qtc = 0.707; the well-damped branch
	(larger box) is searched first.
	"""
	qts = params.qts

	def f3_of(qtc: float) -> float:
		return sealed_f3(params.fs * qtc / qts, qtc)

	lowest = max(0.4, qts * 1.0001)
	branches = [(lowest, BUTTERWORTH), (max(BUTTERWORTH, lowest), 2.0)]
	for lo, hi in branches:
		if lo >= hi:
			continue
		outcome = bisect(f3_of, lo, hi, target_f3_hz, tolerance_hz, max_iter)
		match outcome:
			case Converged(value=qtc):
				return Sealed(find_volume_for_qtc(qts, params.vas, qtc))
			case Exhausted():
				logger.debug("No F3 = %.1f Hz for Qtc in [%.3f, %.3f]", target_f3_hz, lo, hi)
	reachable = [f3_of(q) for q in np.linspace(lowest, max(lowest, 2.0), 200)]
	raise UnreachableTarget(
		f"F3 = {target_f3_hz:.1f} Hz is not reachable in a sealed box with fs = {params.fs:.1f} Hz, "
		f"Qts = {qts:.3f} (achievable F3 is about {min(reachable):.1f} to {max(reachable):.1f} Hz)."
	)
