from __future__ import annotations
import argparse, logging, os, sys
import datetime, pytz, csv
from importlib.metadata import version as _dist_version, PackageNotFoundError
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Any, Dict
import yaml

from .constants import PROGRAMNAME, DEFAULT_QL
from .design import design_sealed, design_ported, compare_alignments, SealedDesign, PortedDesign
from .errors import Unavailable
from .parameters import DriverParameters, normalize_units
from .plotting import plot_response, plot_power
from .response import omega_logspace

def _get_version() -> str:
	try:
		return _dist_version("tsbox")
	except PackageNotFoundError:
		return "unknown"

def write_design_csv(design: SealedDesign | PortedDesign, outdir: str, pre: str):
	"""write response and power-limit data to CSV
	"""
	outpath = os.path.join(outdir, f"{pre}DATA.csv")
	data = {
		"Frequency (Hz)": design.response.frequency_hz,
		"Response (dB)": design.response.magnitude_db,
	}
	if not isinstance(design.power, Unavailable):
		data["Max. power (W)"] = design.power.max_power
		data["Limited by"] = [lf.value for lf in design.power.limited_by]
	df = pd.DataFrame(data)
	# Header lines
	tz = pytz.timezone("Europe/Zurich")
	timestamp = datetime.datetime.now(tz).isoformat()
	header_lines = [
		f"# Program: {PROGRAMNAME}",
		f"# Version: {_get_version()}",
		f"# Generated: {timestamp}",
		f"# Enclosure: {_describe(design)}",
	]
	with open(outpath, "w", encoding="utf-8") as f:
		for line in header_lines:
			f.write(line + "\n")
	df.to_csv(outpath, mode="a", index=False, quoting=csv.QUOTE_NONE, escapechar="\\")
	return outpath

def _describe(design: SealedDesign | PortedDesign) -> str:
	enc = design.enclosure
	label = f" ({design.alignment})" if design.alignment else ""
	if isinstance(design, PortedDesign):
		return (f"vented{label} Vb={enc.volume_m3*1000:.1f} L fb={enc.tuning_hz:.1f} Hz "
			f"port {enc.port_area_m2*1e4:.1f} cm2 x {enc.port_length_m*100:.1f} cm F3={design.system.f3:.1f} Hz")
	return f"sealed{label} Vb={enc.volume_m3*1000:.1f} L Qtc={design.system.qtc:.3f} F3={design.system.f3:.1f} Hz"

def load_config(path: str) -> dict:
	with open(path, "r", encoding="utf-8") as f:
		return yaml.safe_load(f)

# ---------------- Builders ----------------
def _number(spec: Dict[str, Any], key: str, where: str) -> float:
	try:
		return float(spec[key])
	except KeyError:
		raise ValueError(f"{where}: '{key}' is missing.")
	except (TypeError, ValueError):
		raise ValueError(f"{where}: '{key}' is not a number: {spec[key]!r}")

def build_driver(cfg: dict) -> DriverParameters:
	spec = cfg.get("driver")
	if not isinstance(spec, dict):
		raise ValueError("Config must define a 'driver' mapping on top-level.")
	drv = DriverParameters.from_mapping(spec)
	if cfg.get("autodetect_units", False):
		drv, _ = normalize_units(drv)
	return drv

def build_frequencies(cfg: dict) -> np.ndarray:
	frequencies = cfg.get("frequency")
	if not frequencies:
		raise ValueError("Config must define 'frequency' on top-level.")
	fmin = _number(frequencies, "min", "frequency")
	fmax = _number(frequencies, "max", "frequency")
	npts = int(_number(frequencies, "points", "frequency"))
	f, _ = omega_logspace(fmin, fmax, npts)
	return f

def build_design(cfg: dict, drv: DriverParameters, f: np.ndarray) -> SealedDesign | PortedDesign:
	spec = cfg.get("enclosure")
	if not isinstance(spec, dict):
		raise ValueError("Config must define an 'enclosure' mapping on top-level.")
	t = (spec.get("type") or "").lower()
	power_method = spec.get("power_method", "network")
	if t == "sealed":
		if "Vb" in spec:
			return design_sealed(drv, volume_m3=_number(spec, "Vb", "enclosure"), frequencies=f, power_method=power_method)
		if "target_f3" in spec:
			return design_sealed(drv, target_f3_hz=_number(spec, "target_f3", "enclosure"), frequencies=f, power_method=power_method)
		alignment = spec.get("alignment", "butterworth")
		if not isinstance(alignment, str):
			alignment = _number(spec, "alignment", "enclosure")
		return design_sealed(drv, alignment, frequencies=f, power_method=power_method)
	if t == "ported":
		common = dict(
			port_diameter_m=float(spec.get("port_diameter", 0.1)),
			ql=float(spec.get("loss_q", DEFAULT_QL)),
			engine=spec.get("engine", "closed_form"),
			frequencies=f,
			power_method=power_method,
		)
		if "Vb" in spec or "fb" in spec:
			return design_ported(drv, None,
				volume_m3=_number(spec, "Vb", "enclosure"), tuning_hz=_number(spec, "fb", "enclosure"), **common)
		return design_ported(drv, str(spec.get("alignment", "QB3")), **common)
	raise ValueError(f"Unknown enclosure type '{t}'. Use 'sealed' or 'ported'.")

def main(argv=None):
	parser = argparse.ArgumentParser(prog='tsbox', description=f"{PROGRAMNAME}: Sealed and vented box design from Thiele-Small parameters")
	parser.add_argument("config", help="YAML config file")
	parser.add_argument("--compare", nargs='+', default=None,
		help='Alignment names to overlay in the response plot (e.g. butterworth QB3)')
	parser.add_argument("--outdir", default=str(Path.cwd()), help="Output directory for plots")
	parser.add_argument("--prefix", default="", help="Filename prefix")
	parser.add_argument("--png", action="store_true", help="Write PNG plots")
	parser.add_argument("--pdf", action="store_true", help="Write PDF plots")
	parser.add_argument("--csv", action="store_true", help="Write combined data to CSV file")
	args = parser.parse_args(argv)
	if not (args.png or args.pdf or args.csv):
		parser.error("You must specify at least one output format: --png, --pdf, --csv")

	logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
	cfg = load_config(args.config)
	try:
		drv = build_driver(cfg)
		f = build_frequencies(cfg)
		design = build_design(cfg, drv, f)
		others = compare_alignments(drv, args.compare, frequencies=f) if args.compare else []
	except ValueError as e:
		print(f"Error: {e}", file=sys.stderr)
		return 1
	print(_describe(design))
	if isinstance(design.power, Unavailable):
		print(f"Power curve unavailable: {design.power.reason}", file=sys.stderr)

	os.makedirs(args.outdir, exist_ok=True)
	pre = (args.prefix + "_") if args.prefix else ""

	outputs = []
	# PLOTS
	for fmt, enabled in (("png", args.png), ("pdf", args.pdf)):
		if enabled:
			curves = [design.response] + [d.response for d in others]
			labels = [design.alignment or "design"] + [d.alignment for d in others]
			plot_response(curves, labels, outfile=os.path.join(args.outdir, f"{pre}RESPONSE.{fmt}"),
					title=f"Relative response: {_describe(design).split(' Vb=')[0]}")
			if not isinstance(design.power, Unavailable):
				plot_power(design.power, outfile=os.path.join(args.outdir, f"{pre}POWER.{fmt}"))
			outputs.append(fmt.upper())
	# CSV output
	if args.csv:
		write_design_csv(design, args.outdir, pre)
		outputs.append("CSV")
	print(f'Wrote: {", ".join(outputs)} to {args.outdir}/')
	return 0

if __name__ == "__main__":
	raise SystemExit(main())
