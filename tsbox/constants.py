
PROGRAMNAME = 'TSBox'

import numpy as np
TWOPI = 2.0 * np.pi

# Physical constants (room temp)
RHO0 = 1.18        # air density [kg/m^3]
C0   = 343.0       # speed of sound [m/s]

# Drive level used to compute reference displacement [W]
REFERENCE_POWER_W = 1.0

# Smallest magnitude turned into dB; keeps curves finite and plottable
MAGNITUDE_FLOOR = 1e-12
DB_FLOOR = -240.0

# Port end correction (both ends, flanged/free) in units of port diameter
PORT_END_CORRECTION = 0.732

# Largest relative difference between stated tuning and port geometry tuning
TUNING_TOLERANCE = 0.01

# Default enclosure loss Q
DEFAULT_QL = 7.0

# Port air velocity classification [m/s]
PORT_VELOCITY_GOOD = 15.0
PORT_VELOCITY_MODERATE = 20.0
PORT_VELOCITY_HIGH = 30.0
