from __future__ import annotations
import numpy as np
import matplotlib.pyplot as plt

from .constants import PROGRAMNAME
from .power import PowerLimitCurve, LimitingFactor
from .response import ResponseCurve

def __branding(ax):
	ax.text(
		0.99, 0.01, PROGRAMNAME,
		transform=ax.transAxes,
		ha="right", va="bottom",
		color="gray",
		bbox=dict(facecolor="white", edgecolor="none", pad=2.0),
		zorder=10
	)

def plot_response(curves: list[ResponseCurve], labels: list[str], outfile: str | None = None, title: str = "Relative response"):
	fig = plt.figure()
	ax = fig.add_subplot(111)
	for c, lab in zip(curves, labels):
		ax.semilogx(c.frequency_hz, c.magnitude_db, label=lab)
	ax.axhline(-3.0, color="gray", ls="--", lw=0.8)
	ax.set_xlabel("Frequency (Hz)")
	ax.set_ylabel("Level (dB re passband)")
	ax.set_ylim(bottom=max(-40.0, min(float(np.min(c.magnitude_db)) for c in curves)))
	ax.grid(True, which="both", ls=":")
	ax.set_title(title)
	if len(curves) > 1:
		ax.legend(loc="lower right")
	__branding(ax)
	if outfile:
		fig.savefig(outfile, bbox_inches="tight", dpi=150)
	return fig

def plot_power(curve: PowerLimitCurve, outfile: str | None = None, title: str = "Maximum input power"):
	"""Safe power vs frequency; excursion-limited points marked."""
	f = curve.frequencies
	p = curve.max_power
	exc = np.array([lf is LimitingFactor.EXCURSION for lf in curve.limited_by])

	fig = plt.figure()
	ax = fig.add_subplot(111)
	ax.loglog(f, p, label="Max. power")
	if exc.any():
		ax.loglog(f[exc], p[exc], ".", label="Excursion limited")
	ax.axhline(curve.pe, color="gray", ls="--", lw=0.8, label="Thermal limit (Pe)")
	ax.set_xlabel("Frequency (Hz)")
	ax.set_ylabel("Power (W)")
	ax.grid(True, which="both", ls=":")
	ax.set_title(title)
	ax.legend(loc="lower right")
	__branding(ax)
	if outfile:
		fig.savefig(outfile, bbox_inches="tight", dpi=150)
	return fig
