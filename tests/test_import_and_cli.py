import subprocess, sys, pathlib

import yaml

from tsbox.cli import main

CONFIG = {
    "driver": {"fs": 34.3, "qts": 0.35, "vas": 0.201, "qms": 4.1, "re": 5.4,
               "sd": 0.086, "xmax": 0.0085, "pe": 800},
    "enclosure": {"type": "ported", "alignment": "QB3", "port_diameter": 0.15},
    "frequency": {"min": 10, "max": 200, "points": 50},
}

def _write(tmp_path, cfg):
    path = tmp_path / "box.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return str(path)

def test_import():
    import tsbox as pkg
    assert hasattr(pkg, "solve_network")
    assert hasattr(pkg, "max_power_curve")

def test_cli_help():
    # Just check the CLI runs and prints usage
    cmd = [sys.executable, "-m", "tsbox.cli", "--help"]
    cp = subprocess.run(cmd, capture_output=True, text=True)
    assert cp.returncode == 0
    assert "YAML" in cp.stdout or "config" in cp.stdout

def test_cli_writes_csv_and_png(tmp_path, capsys):
    cfg = _write(tmp_path, CONFIG)
    out = tmp_path / "out"
    assert main([cfg, "--outdir", str(out), "--prefix", "qb3", "--csv", "--png"]) == 0
    csv_lines = (out / "qb3_DATA.csv").read_text(encoding="utf-8").splitlines()
    assert csv_lines[0] == "# Program: TSBox"
    assert csv_lines[4].startswith("Frequency (Hz),Response (dB),Max. power (W),Limited by")
    assert len(csv_lines) == 5 + 50
    assert (out / "qb3_RESPONSE.png").exists()
    assert (out / "qb3_POWER.png").exists()
    assert "Wrote: PNG, CSV" in capsys.readouterr().out

def test_cli_sealed_compare(tmp_path):
    cfg = dict(CONFIG, enclosure={"type": "sealed", "alignment": "butterworth"})
    out = tmp_path / "out"
    assert main([_write(tmp_path, cfg), "--outdir", str(out), "--pdf", "--compare", "bessel", "QB3"]) == 0
    assert (out / "RESPONSE.pdf").exists()

def test_cli_reports_bad_config(tmp_path, capsys):
    cfg = dict(CONFIG, enclosure={"type": "sealed", "alignment": 0.2})
    assert main([_write(tmp_path, cfg), "--outdir", str(tmp_path), "--csv"]) == 1
    assert "Error:" in capsys.readouterr().err

def test_cli_needs_an_output_format(tmp_path):
    cmd = [sys.executable, "-m", "tsbox.cli", _write(tmp_path, CONFIG)]
    cp = subprocess.run(cmd, capture_output=True, text=True)
    assert cp.returncode == 2
