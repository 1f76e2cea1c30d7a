from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Sequence

import numpy as np

from .constants import RHO0, C0
from .enclosure import effective_port_length


class Domain(str, Enum):
	ELECTRICAL = "electrical"
	MECHANICAL = "mechanical"
	ACOUSTIC   = "acoustic"


class Element(ABC):
	"""Lumped one-port. impedance() is evaluated over an array of omega."""
	domain: ClassVar[Domain]

	@abstractmethod
	def impedance(self, omega: np.ndarray) -> np.ndarray:
		...


@dataclass
class Net(Element):
	"""Series or parallel combination of same-domain parts."""
	op: str
	parts: Sequence[Element]

	def __post_init__(self):
		if not self.parts:
			raise ValueError("Net() requires at least one element")
		op_norm = self.op.lower().strip()
		if op_norm not in ("series", "parallel"):
			raise ValueError(f"Net.op must be 'series' or 'parallel', got: {self.op}")
		self.op = op_norm
		d0 = self.parts[0].domain
		if any(p.domain != d0 for p in self.parts):
			raise ValueError("All elements in a Net must share the same domain. Insert a transformer.")
		self.domain = d0  # type: ignore[misc]

	def impedance(self, omega):
		if self.op == "series":
			Z = 0j
			for p in self.parts:
				Z = Z + p.impedance(omega)
			return Z
		Y = 0j
		for p in self.parts:
			Y = Y + 1/p.impedance(omega)
		return 1/Y

def Series(parts: Sequence[Element]) -> Net:
	return Net(op="series", parts=parts)

def Parallel(parts: Sequence[Element]) -> Net:
	return Net(op="parallel", parts=parts)


## electrical

@dataclass
class Resistor(Element):
	R: float
	domain: ClassVar[Domain] = Domain.ELECTRICAL
	def impedance(self, omega): return np.broadcast_to(self.R + 0j, np.shape(omega))


## mechanical

@dataclass
class MechResistance(Element):
	R: float
	domain: ClassVar[Domain] = Domain.MECHANICAL
	def impedance(self, omega): return np.broadcast_to(self.R + 0j, np.shape(omega))

@dataclass
class MechMass(Element):
	M: float
	domain: ClassVar[Domain] = Domain.MECHANICAL
	def impedance(self, omega): return 1j * omega * self.M

@dataclass
class MechCompliance(Element):
	C: float
	domain: ClassVar[Domain] = Domain.MECHANICAL
	def impedance(self, omega): return 1/(1j * omega * self.C)


## acoustic

@dataclass
class BoxCompliance(Element):
	"""Air spring of a closed volume, Cab = Vb/(rho c^2)."""
	volume: float
	domain: ClassVar[Domain] = Domain.ACOUSTIC

	@property
	def cab(self) -> float:
		return self.volume / (RHO0 * C0**2)

	def impedance(self, omega): return 1/(1j * omega * self.cab)

@dataclass
class Leakage(Element):
	"""Box loss shunt R_AL = QL/(omega_b Cab)."""
	R: float
	domain: ClassVar[Domain] = Domain.ACOUSTIC
	def impedance(self, omega): return np.broadcast_to(self.R + 0j, np.shape(omega))

@dataclass
class Port(Element):
	"""Air plug of a port: series resistance plus end-corrected acoustic mass."""
	area: float
	length: float
	resistance: float = 0.0
	domain: ClassVar[Domain] = Domain.ACOUSTIC

	@property
	def mass(self) -> float:
		return RHO0 * effective_port_length(self.length, self.area) / self.area

	def impedance(self, omega): return self.resistance + 1j * omega * self.mass


## transformers

@dataclass
class AcToMech(Element):
	# acoustic load seen by the cone: Zm = Sd^2 Za
	load: Element
	sd: float
	domain: ClassVar[Domain] = Domain.MECHANICAL
	def impedance(self, omega):
		return (self.sd**2) * self.load.impedance(omega)

@dataclass
class ElecToMech(Element):
	# electrical source impedance seen by the cone: Zm = Bl^2/Ze
	load: Element
	bl: float
	domain: ClassVar[Domain] = Domain.MECHANICAL
	def impedance(self, omega):
		return (self.bl**2) / self.load.impedance(omega)

@dataclass
class MechToElec(Element):
	# motional impedance at the terminals: Ze = Bl^2/Zm
	load: Element
	bl: float
	domain: ClassVar[Domain] = Domain.ELECTRICAL
	def impedance(self, omega):
		return (self.bl**2) / self.load.impedance(omega)
