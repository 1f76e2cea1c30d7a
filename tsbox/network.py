"""Lumped electro-mechano-acoustic circuit of a driver in a box.

The cone sees its own suspension (Rms, Mms, Cms), the electrical damping
Bl^2/Re and the rear acoustic load Sd^2 Za, where Za is the box air
spring in parallel with the leakage shunt and, for vented boxes, the
port. Front radiation impedance is neglected (it is part of Mms).
"""
from __future__ import annotations
import logging
from dataclasses import dataclass

import numpy as np

from .constants import TWOPI, REFERENCE_POWER_W, MAGNITUDE_FLOOR
from .elements import (
	Series, Parallel, Resistor, MechResistance, MechMass, MechCompliance,
	BoxCompliance, Leakage, Port, AcToMech, ElecToMech, MechToElec,
)
from .enclosure import Sealed, Ported, _positive
from .parameters import DriverParameters, MechanicalParameters, derive_mechanical
from .transfer import magnitude_to_db

logger = logging.getLogger(__name__)

# lowest frequency the circuit is evaluated at [Hz]
F_MIN = 1e-3


@dataclass(frozen=True)
class NetworkSolution:
	frequency: np.ndarray          # Hz
	displacement: np.ndarray       # peak cone excursion |x| [m]
	port_velocity: np.ndarray      # peak port air speed [m/s], 0 for sealed boxes
	radiated_velocity: np.ndarray  # |U_rad|, cone + port + leak [m^3/s]
	cone_velocity: np.ndarray      # complex cone velocity [m/s]
	radiated: np.ndarray           # complex U_rad [m^3/s]
	input_impedance: np.ndarray    # complex electrical input impedance [Ohm]


def _acoustic_load(mech: MechanicalParameters, enclosure: Sealed | Ported):
	"""Rear acoustic load and its port branch (None for sealed boxes)."""
	match enclosure:
		case Sealed(volume_m3=vb):
			return BoxCompliance(_positive("Box volume", vb)), None, None
		case Ported():
			box = BoxCompliance(_positive("Box volume", enclosure.volume_m3))
			port = Port(
				area=_positive("Port area", enclosure.port_area_m2),
				length=enclosure.port_length_m,
				resistance=enclosure.port_resistance,
			)
			if np.isinf(enclosure.loss_q):
				return Parallel([box, port]), port, None
			leak = Leakage(enclosure.loss_q / (TWOPI * enclosure.tuning_hz * box.cab))
			return Parallel([box, leak, port]), port, leak
		case _:
			raise TypeError(f"Unsupported enclosure: {enclosure!r}")


def solve_network(frequency, params: DriverParameters, enclosure: Sealed | Ported,
		voltage: float | None = None, power_w: float = REFERENCE_POWER_W) -> NetworkSolution:
	"""Solve the driver/box circuit on a frequency grid.

	The drive is a voltage source; by default the voltage that dissipates
	power_w in Re, sqrt(P Re).
	"""
	mech = derive_mechanical(params)
	f = np.atleast_1d(np.abs(np.asarray(frequency, dtype=float)))
	f = np.maximum(f, F_MIN)
	omega = TWOPI * f
	if voltage is None:
		voltage = np.sqrt(power_w * mech.re)

	za, port, leak = _acoustic_load(mech, enclosure)
	suspension = Series([MechResistance(mech.rms), MechMass(mech.mms), MechCompliance(mech.cms)])
	rear = AcToMech(za, mech.sd)
	damping = ElecToMech(Resistor(mech.re), mech.bl)

	z_total = Series([suspension, damping, rear]).impedance(omega)
	force = mech.bl * voltage / mech.re
	velocity = force / z_total
	x = velocity / (1j * omega)

	# box pressure and the flows it drives out of the box
	u_cone = mech.sd * velocity
	p_box = -u_cone * za.impedance(omega)
	u_radiated = u_cone
	port_speed = np.zeros_like(f)
	if port is not None:
		u_port = p_box / port.impedance(omega)
		u_radiated = u_radiated + u_port
		port_speed = np.abs(u_port) / port.area
	if leak is not None:
		u_radiated = u_radiated + p_box / leak.impedance(omega)

	z_in = Series([Resistor(mech.re), MechToElec(Series([suspension, rear]), mech.bl)]).impedance(omega)

	return NetworkSolution(
		frequency=f,
		displacement=np.abs(x),
		port_velocity=port_speed,
		radiated_velocity=np.abs(u_radiated),
		cone_velocity=velocity,
		radiated=u_radiated,
		input_impedance=z_in,
	)


def passband_level(params: DriverParameters, power_w: float = REFERENCE_POWER_W) -> float:
	"""omega |U_rad| of the mass-controlled cone, Sd Bl V / (Re Mms)."""
	mech = derive_mechanical(params)
	voltage = np.sqrt(power_w * mech.re)
	return float(mech.sd * mech.bl * voltage / (mech.re * mech.mms))


def network_response_db(frequency, params: DriverParameters, enclosure: Sealed | Ported,
		reference_hz: float | None = None):
	"""Relative far-field response from the circuit [dB].

	Far-field pressure is proportional to omega |U_rad|. The curve is
	relative to the passband level, or to its value at reference_hz.
	"""
	sol = solve_network(frequency, params, enclosure)
	level = TWOPI * sol.frequency * sol.radiated_velocity
	if reference_hz is None:
		level_ref = passband_level(params)
	else:
		ref = solve_network(reference_hz, params, enclosure)
		level_ref = float(TWOPI * ref.frequency[0] * ref.radiated_velocity[0])
	db = magnitude_to_db(level / max(level_ref, MAGNITUDE_FLOOR))
	if np.ndim(frequency) == 0:
		return float(np.asarray(db).ravel()[0])
	return db
