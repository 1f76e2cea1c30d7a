"""End-to-end sealed and vented design workflows."""
from __future__ import annotations
import logging
from dataclasses import dataclass

from .alignment import (
	named_sealed_alignment, sealed_alignment, find_volume_for_f3,
	qb3_alignment, b4_alignment, c4_alignment, SEALED_ALIGNMENTS,
)
from .constants import DEFAULT_QL
from .enclosure import Sealed, Ported, port_area, port_air_velocity, port_velocity_status
from .errors import InvalidParameter, InfeasibleAlignment, DegenerateGeometry, Unavailable
from .parameters import DriverParameters, ValidationReport, validate, reference_efficiency, reference_spl
from .power import PowerLimitCurve, max_power_curve
from .response import ResponseCurve, omega_logspace, response_curve
from .transfer import SealedSystem, PortedSystem, sealed_system, ported_system

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Efficiency:
	eta0: float
	spl0: float    # dB SPL, 1 W / 1 m


@dataclass(frozen=True)
class SealedDesign:
	driver: DriverParameters
	enclosure: Sealed
	system: SealedSystem
	alignment: str | None
	response: ResponseCurve
	power: PowerLimitCurve | Unavailable
	efficiency: Efficiency | None
	validation: ValidationReport


@dataclass(frozen=True)
class PortedDesign:
	driver: DriverParameters
	enclosure: Ported
	system: PortedSystem
	alignment: str | None
	response: ResponseCurve
	power: PowerLimitCurve | Unavailable
	efficiency: Efficiency | None
	validation: ValidationReport
	port_velocity_ms: float | None = None
	port_velocity_status: str | None = None


def _checked(driver: DriverParameters) -> ValidationReport:
	report = validate(driver)
	if report.errors:
		raise InvalidParameter("; ".join(report.errors))
	for w in report.warnings:
		logger.warning("%s", w)
	return report

def _efficiency(driver: DriverParameters) -> Efficiency | None:
	qes = driver.qes
	if qes is None and driver.qms is not None and driver.qms > driver.qts:
		qes = 1.0 / (1.0/driver.qts - 1.0/driver.qms)
	if qes is None:
		return None
	eta0 = reference_efficiency(driver.fs, driver.vas, qes)
	return Efficiency(eta0=eta0, spl0=reference_spl(eta0))

def _grid(frequencies):
	if frequencies is None:
		return omega_logspace()[0]
	return frequencies


def design_sealed(driver: DriverParameters, alignment: str | float | None = "butterworth",
		volume_m3: float | None = None, target_f3_hz: float | None = None,
		frequencies=None, power_method: str = "network") -> SealedDesign:
	"""Sealed box from a volume, a target F3, a named alignment or a Qtc."""
	report = _checked(driver)
	name = None
	if volume_m3 is not None:
		enclosure = Sealed(volume_m3)
	elif target_f3_hz is not None:
		enclosure = find_volume_for_f3(driver, target_f3_hz)
		name = f"F3 {target_f3_hz:g} Hz"
	elif isinstance(alignment, str):
		result = named_sealed_alignment(driver, alignment)
		enclosure, name = result.enclosure(), result.name
	elif alignment is not None:
		result = sealed_alignment(driver, float(alignment))
		enclosure, name = result.enclosure(), result.name
	else:
		raise ValueError("Give a volume, a target F3 or an alignment.")

	f = _grid(frequencies)
	return SealedDesign(
		driver=driver,
		enclosure=enclosure,
		system=sealed_system(driver, enclosure.volume_m3),
		alignment=name,
		response=response_curve(driver, enclosure, f, engine="closed_form"),
		power=max_power_curve(driver, enclosure, f, method=power_method),
		efficiency=_efficiency(driver),
		validation=report,
	)


def design_ported(driver: DriverParameters, alignment: str | None = "QB3",
		volume_m3: float | None = None, tuning_hz: float | None = None,
		port_diameter_m: float = 0.1, ql: float = DEFAULT_QL, engine: str = "closed_form",
		frequencies=None, power_method: str = "network") -> PortedDesign:
	"""Vented box from volume and tuning, or from a named alignment."""
	report = _checked(driver)
	area = port_area(port_diameter_m)
	if volume_m3 is not None and tuning_hz is not None:
		enclosure = Ported.from_tuning(volume_m3, tuning_hz, area, loss_q=ql)
		name = None
	elif alignment is not None:
		key = alignment.lower().strip()
		if key == "qb3":
			result = qb3_alignment(driver.qts, driver.vas, driver.fs)
		elif key == "b4":
			result = b4_alignment(driver.qts, driver.vas, driver.fs, ql=ql)
		elif key == "c4":
			result = c4_alignment(driver.qts, driver.vas, driver.fs, ql=ql)
		else:
			raise ValueError(f"Unknown vented alignment '{alignment}'. Use QB3, B4 or C4.")
		enclosure, name = result.enclosure(area, loss_q=ql), result.name
	else:
		raise ValueError("Give volume and tuning, or an alignment.")

	velocity = status = None
	if driver.sd is not None and driver.xmax is not None:
		velocity = port_air_velocity(driver.sd, driver.xmax, enclosure.tuning_hz, enclosure.port_area_m2)
		status = port_velocity_status(velocity)
		if status in ("high", "critical"):
			logger.warning("Port air velocity %.1f m/s at Xmax is %s; use a larger port.", velocity, status)

	f = _grid(frequencies)
	return PortedDesign(
		driver=driver,
		enclosure=enclosure,
		system=ported_system(driver, enclosure),
		alignment=name,
		response=response_curve(driver, enclosure, f, engine=engine),
		power=max_power_curve(driver, enclosure, f, method=power_method),
		efficiency=_efficiency(driver),
		validation=report,
		port_velocity_ms=velocity,
		port_velocity_status=status,
	)


def compare_alignments(driver: DriverParameters, names=("bessel", "butterworth", "chebyshev", "QB3"),
		frequencies=None, port_diameter_m: float = 0.1) -> list[SealedDesign | PortedDesign]:
	"""One design per alignment name; unachievable alignments are skipped."""
	designs = []
	for name in names:
		try:
			if name.lower() in SEALED_ALIGNMENTS:
				designs.append(design_sealed(driver, name, frequencies=frequencies))
			else:
				designs.append(design_ported(driver, name, port_diameter_m=port_diameter_m, frequencies=frequencies))
		except (InfeasibleAlignment, DegenerateGeometry) as e:
			logger.info("Skipping %s: %s", name, e)
	return designs
