from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .enclosure import Sealed, Ported
from .network import network_response_db
from .parameters import DriverParameters
from .transfer import closed_form_response_db


def omega_logspace(fmin=10.0, fmax=200.0, n=100):
	if not (0.0 < fmin < fmax):
		raise ValueError(f"Frequency range must satisfy 0 < min < max, got {fmin}..{fmax}")
	if int(n) < 2:
		raise ValueError("Frequency grid needs at least two points.")
	f = np.logspace(np.log10(fmin), np.log10(fmax), int(n))
	return f, 2*np.pi*f


@dataclass(frozen=True)
class ResponseCurve:
	frequency_hz: np.ndarray
	magnitude_db: np.ndarray
	engine: str = "closed_form"

	def __post_init__(self):
		for name in ("frequency_hz", "magnitude_db"):
			arr = np.array(getattr(self, name), dtype=float)
			arr.setflags(write=False)
			object.__setattr__(self, name, arr)
		if self.frequency_hz.shape != self.magnitude_db.shape:
			raise ValueError("frequency_hz and magnitude_db must have the same length")

	def __iter__(self):
		return zip(self.frequency_hz.tolist(), self.magnitude_db.tolist())

	def __len__(self):
		return len(self.frequency_hz)

	def level_at(self, frequency_hz: float) -> float:
		"""Level interpolated on a log-frequency axis [dB]."""
		return float(np.interp(np.log(frequency_hz), np.log(self.frequency_hz), self.magnitude_db))


def response_curve(params: DriverParameters, enclosure: Sealed | Ported, frequencies,
		engine: str = "closed_form", reference_hz: float | None = None) -> ResponseCurve:
	"""Response relative to the passband (or to reference_hz) from either engine."""
	f = np.asarray(frequencies, dtype=float)
	if engine == "closed_form":
		db = closed_form_response_db(f, params, enclosure, reference_hz)
	elif engine == "network":
		db = network_response_db(f, params, enclosure, reference_hz)
	else:
		raise ValueError(f"Unknown response engine '{engine}'. Use 'closed_form' or 'network'.")
	return ResponseCurve(frequency_hz=f, magnitude_db=db, engine=engine)
