# import things so they will be available:
# import tsbox as ts
# ts.design_sealed(ts.DriverParameters(...))

from .errors import (
    TSBoxError, InvalidParameter, InfeasibleAlignment,
    UnreachableTarget, DegenerateGeometry, Unavailable,
)
from .parameters import (
    DriverParameters, MechanicalParameters, ValidationReport,
    derive_mechanical, validate, normalize_units,
    reference_efficiency, reference_spl,
)
from .enclosure import (
    Sealed, Ported, Enclosure,
    port_area, slot_port_area, equivalent_diameter,
    port_air_velocity, port_velocity_status,
)
from .transfer import (
    sealed_response_db, sealed_f3, ported_response_db, ported_response_complex, ported_f3,
    ported_displacement_complex, SealedSystem, PortedSystem, system_parameters,
)
from .network import NetworkSolution, solve_network, network_response_db
from .alignment import (
    AlignmentResult, Converged, Exhausted,
    find_volume_for_qtc, find_volume_for_f3, sealed_alignment, sealed_alignments,
    qb3_alignment, b4_alignment, c4_alignment, ported_alignments,
    BUTTERWORTH, BESSEL, CHEBYSHEV,
)
from .power import (
    LimitingFactor, PowerLimitPoint, PowerLimitCurve, PowerWarning,
    displacement, max_power_curve, power_warnings,
)
from .response import ResponseCurve, response_curve, omega_logspace
from .design import SealedDesign, PortedDesign, design_sealed, design_ported, compare_alignments
from .plotting import plot_response, plot_power

# import ALL public constants directly
from .constants import PROGRAMNAME, TWOPI, RHO0, C0

__all__ = [
    # errors
    "TSBoxError", "InvalidParameter", "InfeasibleAlignment",
    "UnreachableTarget", "DegenerateGeometry", "Unavailable",
    # parameters
    "DriverParameters", "MechanicalParameters", "ValidationReport",
    "derive_mechanical", "validate", "normalize_units",
    "reference_efficiency", "reference_spl",
    # enclosures
    "Sealed", "Ported", "Enclosure",
    "port_area", "slot_port_area", "equivalent_diameter",
    "port_air_velocity", "port_velocity_status",
    # closed-form engine
    "sealed_response_db", "sealed_f3", "ported_response_db", "ported_response_complex", "ported_f3",
    "ported_displacement_complex",
    "SealedSystem", "PortedSystem", "system_parameters",
    # network solver
    "NetworkSolution", "solve_network", "network_response_db",
    # alignments
    "AlignmentResult", "Converged", "Exhausted",
    "find_volume_for_qtc", "find_volume_for_f3", "sealed_alignment", "sealed_alignments",
    "qb3_alignment", "b4_alignment", "c4_alignment", "ported_alignments",
    "BUTTERWORTH", "BESSEL", "CHEBYSHEV",
    # power
    "LimitingFactor", "PowerLimitPoint", "PowerLimitCurve", "PowerWarning",
    "displacement", "max_power_curve", "power_warnings",
    # response
    "ResponseCurve", "response_curve", "omega_logspace",
    # design
    "SealedDesign", "PortedDesign", "design_sealed", "design_ported", "compare_alignments",
    # plotting
    "plot_response", "plot_power",
    # constants
    "PROGRAMNAME", "TWOPI", "RHO0", "C0",
]
