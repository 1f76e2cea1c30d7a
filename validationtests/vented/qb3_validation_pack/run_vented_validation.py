#!/usr/bin/env python3
import sys
import numpy as np
import matplotlib.pyplot as plt

from pathlib import Path


# --- path setup ---
here = Path(__file__).resolve().parent
repo_root = here.parents[2]   # qb3_validation_pack -> vented -> validationtests -> repo root
sys.path.insert(0, str(repo_root))


from tsbox import DriverParameters, Ported, port_area, qb3_alignment, solve_network, max_power_curve
from tsbox.network import network_response_db
from tsbox.transfer import closed_form_response_db
from tsbox.power import displacement


def main():
	drv = DriverParameters(fs=34.3, qts=0.35, vas=0.201, qms=4.1, re=5.4, sd=0.086, xmax=0.0085, pe=800.0)
	qb3 = qb3_alignment(drv.qts, drv.vas, drv.fs)
	f = np.logspace(np.log10(5.0), np.log10(200.0), 400)

	print(f"QB3: Vb = {qb3.volume_m3*1000:.1f} L, fb = {qb3.tuning_hz:.1f} Hz")
	print("\nClosed form vs network, max |difference| [dB]:")
	print("     QL   max|dB|")
	plt.figure()
	for ql in (np.inf, 15.0, 7.0, 3.0):
		box = Ported.from_tuning(qb3.volume_m3, qb3.tuning_hz, port_area(0.1), loss_q=ql)
		closed = closed_form_response_db(f, drv, box)
		net = network_response_db(f, drv, box)
		print(f"{ql:7.1f}  {np.max(np.abs(closed - net)):8.2e}")
		line, = plt.semilogx(f, closed, label=f"closed form, QL={ql:g}")
		plt.semilogx(f, net, "--", color=line.get_color())
	plt.ylim(-40, 5)
	plt.xlabel("Frequency [Hz]"); plt.ylabel("Level [dB re passband]"); plt.grid(True, which="both", ls=":")
	plt.title("Vented response: closed form (solid) vs network (dashed)"); plt.legend()

	box = Ported.from_tuning(qb3.volume_m3, qb3.tuning_hz, port_area(0.1))
	x_net = displacement(drv, box, f, method="network")
	x_cf = displacement(drv, box, f, method="closed_form")
	f_min = f[np.argmin(np.where(f > 10.0, x_net, np.inf))]
	i_fb = int(np.argmin(np.abs(f - qb3.tuning_hz)))
	print(f"\nCone excursion at 1 W near fb ({f[i_fb]:.1f} Hz):")
	print(f"  network     {x_net[i_fb]*1000:.3f} mm  (minimum at {f_min:.1f} Hz)")
	print(f"  closed form {x_cf[i_fb]*1000:.3f} mm")

	plt.figure()
	plt.loglog(f, x_net*1000, label="network")
	plt.loglog(f, x_cf*1000, "--", label="closed form (Small 1973)")
	plt.xlabel("Frequency [Hz]"); plt.ylabel("Excursion at 1 W [mm]"); plt.grid(True, which="both", ls=":")
	plt.title("Cone excursion, QB3 box"); plt.legend()

	sol = solve_network(f, drv, box)
	plt.figure()
	plt.loglog(f, sol.port_velocity, label="port air speed at 1 W")
	plt.xlabel("Frequency [Hz]"); plt.ylabel("[m/s]"); plt.grid(True, which="both", ls=":"); plt.legend()

	curve = max_power_curve(drv, box, f)
	plt.figure()
	plt.loglog(curve.frequencies, curve.max_power)
	plt.axhline(drv.pe, ls=":", lw=1)
	plt.xlabel("Frequency [Hz]"); plt.ylabel("Max. power [W]"); plt.grid(True, which="both", ls=":")
	plt.title("Power handling with excursion null at fb")
	plt.show()

if __name__=="__main__": main()
