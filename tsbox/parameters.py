from __future__ import annotations
import logging
import math
from dataclasses import dataclass, fields, replace

import numpy as np

from .constants import TWOPI, RHO0, C0
from .errors import InvalidParameter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverParameters:
	"""Thiele-Small parameter set of one driver, SI units throughout.

	Only fs, qts and vas are required. The remaining fields are optional
	and unlock the network solver (re, sd, qms or qes), the power-limit
	engine (xmax, pe) and the cross-checks in validate().
	"""
	fs: float                   # Hz
	qts: float
	vas: float                  # m^3
	qes: float | None = None
	qms: float | None = None
	re: float | None = None     # Ohm
	bl: float | None = None     # N/A (= Tm)
	mms: float | None = None    # kg
	cms: float | None = None    # m/N
	rms: float | None = None    # N s/m
	sd: float | None = None     # m^2
	le: float | None = None     # H, carried but not modelled
	xmax: float | None = None   # m, one-way
	pe: float | None = None     # W

	def __post_init__(self):
		for fld in fields(self):
			val = getattr(self, fld.name)
			if val is None:
				continue
			try:
				val = float(val)
			except (TypeError, ValueError):
				raise InvalidParameter(f"Driver parameter '{fld.name}' is not a number: {val!r}")
			if not math.isfinite(val) or val <= 0.0:
				raise InvalidParameter(f"Driver parameter '{fld.name}' must be finite and > 0, got {val}")
			object.__setattr__(self, fld.name, val)

	@classmethod
	def from_mapping(cls, data) -> "DriverParameters":
		known = {fld.name for fld in fields(cls)}
		unknown = sorted(set(data) - known)
		if unknown:
			raise InvalidParameter(f"Unknown driver parameter(s): {', '.join(unknown)}")
		for key in ("fs", "qts", "vas"):
			if data.get(key) is None:
				raise InvalidParameter(f"Driver parameter '{key}' is required.")
		return cls(**{k: v for k, v in data.items() if v is not None})

	def displacement_volume(self) -> float | None:
		"""Peak displacement volume Vd = Sd * Xmax [m^3]."""
		if self.sd is None or self.xmax is None:
			return None
		return self.sd * self.xmax

	def efficiency_bandwidth_product(self) -> float | None:
		if self.qes is None:
			return None
		return self.fs / self.qes

	def enclosure_hint(self) -> str | None:
		ebp = self.efficiency_bandwidth_product()
		if ebp is None:
			return None
		if ebp < 50:
			return "sealed"
		if ebp < 100:
			return "sealed or ported"
		return "ported"


@dataclass(frozen=True)
class MechanicalParameters:
	cms: float   # m/N
	mms: float   # kg
	rms: float   # N s/m
	bl: float    # N/A
	qes: float
	qms: float
	re: float    # Ohm
	sd: float    # m^2

	@property
	def omega_s(self) -> float:
		return 1.0 / np.sqrt(self.mms * self.cms)


def derive_mechanical(params: DriverParameters) -> MechanicalParameters:
	"""Mechanical/electrical lumped values from the small-signal set.

	Uses fs, qts, vas, re, sd and either qms or qes.
	"""
	if params.re is None or params.sd is None:
		raise InvalidParameter("re and sd are required to derive mechanical parameters.")
	qts = params.qts
	if params.qms is not None:
		qms = params.qms
		if qts >= qms:
			raise InvalidParameter(f"qts ({qts}) must be smaller than qms ({qms}).")
	elif params.qes is not None:
		if qts >= params.qes:
			raise InvalidParameter(f"qts ({qts}) must be smaller than qes ({params.qes}).")
		qms = 1.0 / (1.0/qts - 1.0/params.qes)
	else:
		raise InvalidParameter("qms or qes is required to derive mechanical parameters.")
	omega_s = TWOPI * params.fs
	cms = params.vas / (RHO0 * C0**2 * params.sd**2)
	mms = 1.0 / (omega_s**2 * cms)
	qes = 1.0 / (1.0/qts - 1.0/qms)
	bl = np.sqrt(omega_s * mms * params.re / qes)
	rms = omega_s * mms / qms
	return MechanicalParameters(
		cms=float(cms), mms=float(mms), rms=float(rms), bl=float(bl),
		qes=float(qes), qms=float(qms), re=params.re, sd=params.sd,
	)


@dataclass(frozen=True)
class ValidationReport:
	errors: tuple[str, ...] = ()
	warnings: tuple[str, ...] = ()

	@property
	def ok(self) -> bool:
		return not self.errors


def _rel(a: float, b: float) -> float:
	return abs(a - b) / abs(b)


def validate(
	params: DriverParameters,
	q_tolerance: float = 0.05,
	vas_tolerance: float = 0.15,
	fs_tolerance: float = 0.10,
	warn_only: bool = False,
) -> ValidationReport:
	"""Check absolute bounds and cross-relations of a parameter set.

	Bounds and irreconcilable relations are errors; datasheet-style
	disagreements between measurement methods are warnings. With
	warn_only the qts/qes/qms relation is reported as a warning too.
	"""
	errors: list[str] = []
	warnings: list[str] = []

	if not 10.0 <= params.fs <= 500.0:
		errors.append(f"fs = {params.fs:.1f} Hz is outside 10-500 Hz.")
	if not 0.2 <= params.qts <= 1.5:
		warnings.append(f"qts = {params.qts:.3f} is outside the usual 0.2-1.5 range.")
	if params.vas > 2.0:
		errors.append(f"vas = {params.vas*1000:.0f} L exceeds 2000 L (units?).")

	if params.qes is not None and params.qes <= params.qts:
		errors.append(f"qes ({params.qes:.3f}) must be larger than qts ({params.qts:.3f}).")
	if params.qms is not None and params.qms <= params.qts:
		errors.append(f"qms ({params.qms:.3f}) must be larger than qts ({params.qts:.3f}).")
	if params.qes is not None and params.qms is not None:
		qts_calc = params.qes * params.qms / (params.qes + params.qms)
		if _rel(qts_calc, params.qts) > q_tolerance:
			(warnings if warn_only else errors).append(
				f"qts = {params.qts:.3f} disagrees with qes*qms/(qes+qms) = {qts_calc:.3f} "
				f"by more than {q_tolerance:.0%}."
			)

	if params.cms is not None and params.sd is not None:
		vas_calc = RHO0 * C0**2 * params.cms * params.sd**2
		if _rel(vas_calc, params.vas) > vas_tolerance:
			warnings.append(
				f"vas = {params.vas*1000:.1f} L disagrees with cms/sd ({vas_calc*1000:.1f} L)."
			)
	if params.mms is not None and params.cms is not None:
		fs_calc = 1.0 / (TWOPI * np.sqrt(params.mms * params.cms))
		if _rel(fs_calc, params.fs) > fs_tolerance:
			warnings.append(
				f"fs = {params.fs:.1f} Hz disagrees with mms/cms ({fs_calc:.1f} Hz)."
			)

	if params.re is not None and not 1.0 <= params.re <= 50.0:
		warnings.append(f"re = {params.re:.2f} Ohm is outside 1-50 Ohm.")
	if params.bl is not None and not 5.0 <= params.bl <= 50.0:
		warnings.append(f"bl = {params.bl:.2f} N/A is outside 5-50 N/A.")
	if params.xmax is not None and not 0.001 <= params.xmax <= 0.05:
		warnings.append(f"xmax = {params.xmax*1000:.1f} mm is outside 1-50 mm.")

	return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))


# field: (threshold above which the value is taken as non-SI, factor to SI, unit)
_UNIT_GUESSES = {
	"vas":  (5.0, 1e-3, "L"),
	"mms":  (5.0, 1e-3, "g"),
	"cms":  (1.0, 1e-3, "mm/N"),
	"xmax": (1.0, 1e-3, "mm"),
	"sd":   (1.0, 1e-4, "cm^2"),
	"le":   (0.1, 1e-3, "mH"),
}

def normalize_units(params: DriverParameters) -> tuple[DriverParameters, tuple[str, ...]]:
	"""Convert entries that are evidently in catalogue units to SI.

	Returns a new instance and the names of the converted fields.
	"""
	changes = {}
	for name, (threshold, factor, unit) in _UNIT_GUESSES.items():
		val = getattr(params, name)
		if val is not None and val > threshold:
			changes[name] = val * factor
			logger.warning("Interpreting %s = %g as %s", name, val, unit)
	if not changes:
		return params, ()
	return replace(params, **changes), tuple(changes)


def reference_efficiency(fs: float, vas: float, qes: float) -> float:
	"""Half-space reference efficiency eta0 (Small 1972)."""
	return float((4.0 * np.pi**2 / C0**3) * fs**3 * vas / qes)


def reference_spl(eta0: float) -> float:
	"""Sensitivity at 1 W / 1 m for a given reference efficiency."""
	return float(112.0 + 10.0 * np.log10(eta0))
