from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .constants import TWOPI, REFERENCE_POWER_W
from .enclosure import Sealed, Ported
from .errors import Unavailable
from .network import solve_network
from .parameters import DriverParameters, derive_mechanical
from .transfer import ported_displacement_complex

logger = logging.getLogger(__name__)

# displacement below this is treated as this [m]; keeps excursion power finite
DISPLACEMENT_FLOOR = 1e-15


class LimitingFactor(str, Enum):
	THERMAL = "thermal"
	EXCURSION = "excursion"


@dataclass(frozen=True)
class PowerLimitPoint:
	frequency_hz: float
	max_power_w: float
	limiting_factor: LimitingFactor
	displacement_at_reference_m: float
	displacement_at_thermal_m: float


@dataclass(frozen=True)
class PowerLimitCurve:
	points: tuple[PowerLimitPoint, ...]
	xmax: float
	pe: float
	method: str

	def __iter__(self):
		return iter(self.points)

	def __len__(self):
		return len(self.points)

	def __getitem__(self, i):
		return self.points[i]

	@property
	def frequencies(self) -> np.ndarray:
		return np.array([p.frequency_hz for p in self.points])

	@property
	def max_power(self) -> np.ndarray:
		return np.array([p.max_power_w for p in self.points])

	@property
	def limited_by(self) -> list[LimitingFactor]:
		return [p.limiting_factor for p in self.points]

	def excursion_limited(self) -> list[PowerLimitPoint]:
		return [p for p in self.points if p.limiting_factor is LimitingFactor.EXCURSION]


def _closed_form_displacement(params: DriverParameters, enclosure: Sealed | Ported, f: np.ndarray, power_w: float):
	mech = derive_mechanical(params)
	omega = TWOPI * np.maximum(f, 1e-3)
	alpha = params.vas / enclosure.volume_m3
	force = mech.bl * np.sqrt(power_w * mech.re) / mech.re
	match enclosure:
		case Sealed():
			z = mech.rms + mech.bl**2 / mech.re + 1j*omega*mech.mms + (1.0 + alpha) / (1j*omega*mech.cms)
			return np.abs(force / (1j * omega * z))
		case Ported():
			# X(0) = 1 at the free-air static excursion F Cms
			x = ported_displacement_complex(f, params.fs, enclosure.tuning_hz, alpha, params.qts, enclosure.loss_q)
			return force * mech.cms * np.abs(x)
		case _:
			raise TypeError(f"Unsupported enclosure: {enclosure!r}")


def displacement(params: DriverParameters, enclosure: Sealed | Ported, frequency,
		power_w: float = REFERENCE_POWER_W, method: str = "network"):
	"""Peak cone excursion [m] for a given electrical input power.

	method "network" solves the full circuit; "closed_form" uses the
	sealed equation of motion or the vented displacement function of
	Small 1973. Both show the excursion null at port tuning.
	"""
	f = np.atleast_1d(np.abs(np.asarray(frequency, dtype=float)))
	if method == "network":
		x = solve_network(f, params, enclosure, power_w=power_w).displacement
	elif method == "closed_form":
		x = _closed_form_displacement(params, enclosure, f, power_w)
	else:
		raise ValueError(f"Unknown displacement method '{method}'. Use 'network' or 'closed_form'.")
	if np.ndim(frequency) == 0:
		return float(x[0])
	return x


def _missing_for_power(params: DriverParameters) -> str | None:
	if params.xmax is None:
		return "xmax is not specified"
	if params.pe is None:
		return "pe is not specified"
	if params.re is None or params.sd is None:
		return "re and sd are required for the displacement model"
	if params.qms is None and params.qes is None:
		return "qms or qes is required for the displacement model"
	return None


def max_power_curve(params: DriverParameters, enclosure: Sealed | Ported, frequency_grid,
		method: str = "network", reference_power_w: float = REFERENCE_POWER_W) -> PowerLimitCurve | Unavailable:
	"""Maximum safe input power per frequency, thermal or excursion limited."""
	reason = _missing_for_power(params)
	if reason is not None:
		logger.info("Power curve unavailable: %s", reason)
		return Unavailable(reason)

	f = np.atleast_1d(np.asarray(frequency_grid, dtype=float))
	x_ref = np.maximum(displacement(params, enclosure, f, reference_power_w, method), DISPLACEMENT_FLOOR)
	# excursion grows with sqrt(P)
	p_excursion = reference_power_w * (params.xmax / x_ref)**2
	x_thermal = x_ref * np.sqrt(params.pe / reference_power_w)

	points = []
	for fi, pex, xr, xt in zip(f, p_excursion, x_ref, x_thermal):
		if pex < params.pe:
			points.append(PowerLimitPoint(float(fi), float(pex), LimitingFactor.EXCURSION, float(xr), float(xt)))
		else:
			points.append(PowerLimitPoint(float(fi), float(params.pe), LimitingFactor.THERMAL, float(xr), float(xt)))
	return PowerLimitCurve(points=tuple(points), xmax=params.xmax, pe=params.pe, method=method)


@dataclass(frozen=True)
class PowerWarning:
	frequency_hz: float
	requested_w: float
	max_power_w: float
	limiting_factor: LimitingFactor
	severity: str


def power_warnings(curve: PowerLimitCurve, power_w: float, margin: float = 1.0) -> list[PowerWarning]:
	"""Frequencies where power_w exceeds margin times the safe limit."""
	out = []
	for p in curve:
		if power_w > margin * p.max_power_w:
			severity = "critical" if power_w > 1.5 * p.max_power_w else "warning"
			out.append(PowerWarning(p.frequency_hz, power_w, p.max_power_w, p.limiting_factor, severity))
	return out
