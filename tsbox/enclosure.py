from __future__ import annotations
import math
from dataclasses import dataclass

import numpy as np

from .constants import (
	TWOPI, C0, PORT_END_CORRECTION, TUNING_TOLERANCE, DEFAULT_QL,
	PORT_VELOCITY_GOOD, PORT_VELOCITY_MODERATE, PORT_VELOCITY_HIGH,
)
from .errors import DegenerateGeometry


def _positive(name: str, value) -> float:
	try:
		value = float(value)
	except (TypeError, ValueError):
		raise DegenerateGeometry(f"{name} is not a number: {value!r}")
	if not math.isfinite(value) or value <= 0.0:
		raise DegenerateGeometry(f"{name} must be finite and > 0, got {value}")
	return value


def port_area(diameter: float) -> float:
	"""Cross-section of a round port [m^2]."""
	return float(np.pi * diameter**2 / 4.0)

def slot_port_area(width: float, height: float) -> float:
	return float(width * height)

def equivalent_diameter(area: float) -> float:
	"""Diameter of the round port with the same cross-section."""
	return float(np.sqrt(4.0 * area / np.pi))

def effective_port_length(port_length: float, area: float) -> float:
	"""Physical length plus end correction of both port ends."""
	return port_length + PORT_END_CORRECTION * equivalent_diameter(area)

def helmholtz_tuning(volume: float, area: float, port_length: float) -> float:
	"""Tuning frequency of a box and port [Hz]."""
	return float(C0 / TWOPI * np.sqrt(area / (volume * effective_port_length(port_length, area))))


@dataclass(frozen=True)
class Sealed:
	volume_m3: float

	def __post_init__(self):
		object.__setattr__(self, "volume_m3", _positive("Box volume", self.volume_m3))


@dataclass(frozen=True)
class Ported:
	volume_m3: float
	tuning_hz: float
	port_area_m2: float
	port_length_m: float
	loss_q: float = DEFAULT_QL        # box losses QL at tuning; inf = lossless
	port_resistance: float = 0.0      # series port resistance [Pa s/m^3]

	def __post_init__(self):
		object.__setattr__(self, "volume_m3", _positive("Box volume", self.volume_m3))
		object.__setattr__(self, "tuning_hz", _positive("Tuning frequency", self.tuning_hz))
		object.__setattr__(self, "port_area_m2", _positive("Port area", self.port_area_m2))
		object.__setattr__(self, "port_length_m", _positive("Port length", self.port_length_m))
		loss_q = float(self.loss_q)
		if math.isnan(loss_q) or loss_q <= 0.0:
			raise DegenerateGeometry(f"loss_q must be > 0 (inf for lossless), got {self.loss_q}")
		object.__setattr__(self, "loss_q", loss_q)
		rp = float(self.port_resistance)
		if not math.isfinite(rp) or rp < 0.0:
			raise DegenerateGeometry(f"port_resistance must be finite and >= 0, got {self.port_resistance}")
		object.__setattr__(self, "port_resistance", rp)
		geometry = helmholtz_tuning(self.volume_m3, self.port_area_m2, self.port_length_m)
		if abs(geometry - self.tuning_hz) > TUNING_TOLERANCE * self.tuning_hz:
			raise DegenerateGeometry(
				f"Port of {self.port_area_m2*1e4:.1f} cm^2 x {self.port_length_m*100:.1f} cm tunes "
				f"{self.volume_m3*1000:.1f} L to {geometry:.2f} Hz, not {self.tuning_hz:.2f} Hz."
			)

	@classmethod
	def from_tuning(cls, volume_m3: float, tuning_hz: float, port_area_m2: float,
			loss_q: float = DEFAULT_QL, port_resistance: float = 0.0) -> "Ported":
		"""Port length realising a tuning frequency (Small 1973, eq. 15)."""
		vb = _positive("Box volume", volume_m3)
		fb = _positive("Tuning frequency", tuning_hz)
		sp = _positive("Port area", port_area_m2)
		length = C0**2 * sp / ((TWOPI * fb)**2 * vb) - PORT_END_CORRECTION * equivalent_diameter(sp)
		if length <= 0.0:
			raise DegenerateGeometry(
				f"Port of {sp*1e4:.1f} cm^2 cannot tune {vb*1000:.1f} L to {fb:.1f} Hz "
				"(required length is not positive); use a larger port or a lower tuning."
			)
		return cls(vb, fb, sp, length, loss_q, port_resistance)

	@classmethod
	def from_port(cls, volume_m3: float, port_area_m2: float, port_length_m: float,
			loss_q: float = DEFAULT_QL, port_resistance: float = 0.0) -> "Ported":
		"""Helmholtz tuning of a given box and port."""
		vb = _positive("Box volume", volume_m3)
		sp = _positive("Port area", port_area_m2)
		lp = _positive("Port length", port_length_m)
		return cls(vb, helmholtz_tuning(vb, sp, lp), sp, lp, loss_q, port_resistance)

	@property
	def effective_length_m(self) -> float:
		return effective_port_length(self.port_length_m, self.port_area_m2)


Enclosure = Sealed | Ported


def port_air_velocity(sd: float, xmax: float, tuning_hz: float, area: float) -> float:
	"""Peak port air speed when the cone moves Xmax at tuning [m/s]."""
	return float(sd * xmax * TWOPI * tuning_hz / _positive("Port area", area))

def port_velocity_status(velocity: float) -> str:
	if velocity < PORT_VELOCITY_GOOD:
		return "good"
	if velocity < PORT_VELOCITY_MODERATE:
		return "moderate"
	if velocity < PORT_VELOCITY_HIGH:
		return "high"
	return "critical"
