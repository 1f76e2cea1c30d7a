import numpy as np
import pytest

from tsbox import (
    DriverParameters, Sealed, InfeasibleAlignment, UnreachableTarget,
    find_volume_for_qtc, find_volume_for_f3, qb3_alignment, sealed_alignments,
    ported_alignments, b4_alignment, c4_alignment, Converged, Exhausted,
)
from tsbox.alignment import bisect, butterworth_coefficients, chebyshev_coefficients, named_sealed_alignment
from tsbox.transfer import sealed_system, ported_response_complex


@pytest.mark.parametrize("qts", [0.2, 0.35, 0.5, 0.9])
@pytest.mark.parametrize("vas", [0.01, 0.2, 1.5])
def test_volume_for_qtc_hits_target(qts, vas):
    for target in (qts * 1.05, 0.707, 1.0, 1.6):
        if target <= qts:
            continue
        volume = find_volume_for_qtc(qts, vas, target)
        assert qts * np.sqrt(1 + vas / volume) == pytest.approx(target, rel=1e-6)


@pytest.mark.parametrize("target", [0.3, 0.45, 0.5])
def test_volume_for_qtc_infeasible(target):
    with pytest.raises(InfeasibleAlignment):
        find_volume_for_qtc(0.5, 0.1, target)


def test_qb3():
    qb3 = qb3_alignment(0.35, 0.201, 34.3)
    assert qb3.tuning_hz == 34.3
    # 15 * 0.35**3.3 * 0.201
    assert qb3.volume_m3 == pytest.approx(0.0943, abs=1e-3)
    assert qb3.alpha == pytest.approx(0.201 / qb3.volume_m3)
    assert qb3.ported and qb3.validated
    assert 34.3 < qb3.f3_hz < 60.0


def test_qb3_enclosure(qb3_driver):
    qb3 = ported_alignments(qb3_driver)[0]
    box = qb3.enclosure(port_area_m2=0.00785)
    assert box.tuning_hz == qb3_driver.fs
    assert box.port_length_m > 0
    with pytest.raises(ValueError):
        qb3.enclosure()


def test_sealed_alignments_skip_infeasible():
    driver = DriverParameters(fs=40.0, qts=0.6, vas=0.05)
    names = [a.name for a in sealed_alignments(driver)]
    assert names == ["Butterworth", "Chebyshev"]
    volumes = [a.volume_m3 for a in sealed_alignments(driver)]
    assert volumes == sorted(volumes, reverse=True)


def test_named_alignment(minimal_driver):
    bw = named_sealed_alignment(minimal_driver, "Butterworth")
    assert bw.qtc == pytest.approx(0.7071, abs=1e-4)
    assert bw.f3_hz == pytest.approx(49.7, abs=1.0)
    assert isinstance(bw.enclosure(), Sealed)
    with pytest.raises(ValueError):
        named_sealed_alignment(minimal_driver, "linkwitz")


def test_bisect_outcomes():
    done = bisect(lambda x: x * x, 0.0, 2.0, 2.0, 1e-9, max_iter=60)
    assert isinstance(done, Converged)
    assert done.value == pytest.approx(np.sqrt(2.0), rel=1e-8)
    short = bisect(lambda x: x * x, 0.0, 2.0, 2.0, 1e-9, max_iter=5)
    assert isinstance(short, Exhausted)
    assert short.iterations == 5
    assert short.best == pytest.approx(np.sqrt(2.0), abs=0.1)
    outside = bisect(lambda x: x * x, 0.0, 1.0, 2.0, 1e-9)
    assert outside == Exhausted(None, 0)


def test_volume_for_f3(qb3_driver):
    box = find_volume_for_f3(qb3_driver, 80.0)
    system = sealed_system(qb3_driver, box.volume_m3)
    assert system.f3 == pytest.approx(80.0, abs=0.5)
    # the larger, better damped solution is preferred
    assert system.qtc <= 0.7072


def test_volume_for_f3_upper_branch():
    driver = DriverParameters(fs=30.0, qts=0.8, vas=0.05)
    box = find_volume_for_f3(driver, 40.0)
    system = sealed_system(driver, box.volume_m3)
    assert system.f3 == pytest.approx(40.0, abs=0.5)
    assert system.qtc > 0.8


def test_volume_for_f3_unreachable(qb3_driver):
    # lowest sealed F3 for this driver is about 0.707 * fs / qts = 69 Hz
    with pytest.raises(UnreachableTarget):
        find_volume_for_f3(qb3_driver, 60.0)


def test_butterworth_prototype():
    assert butterworth_coefficients() == pytest.approx((2.6131, 3.4142, 2.6131), abs=1e-3)


def test_b4_lossless():
    a1, a2, a3 = butterworth_coefficients()
    qts = 1 / np.sqrt(a1 * a3)
    b4 = b4_alignment(qts, 0.1, 30.0)
    assert not b4.validated
    assert b4.alpha == pytest.approx(np.sqrt(2.0), rel=1e-2)
    assert b4.tuning_hz == pytest.approx(30.0, rel=1e-2)
    assert b4.volume_m3 == pytest.approx(0.1 / b4.alpha)


def test_b4_infeasible():
    with pytest.raises(InfeasibleAlignment):
        b4_alignment(0.6, 0.1, 30.0)


def test_c4_recovers_ripple():
    a1, a2, a3 = chebyshev_coefficients(0.5)
    qts = 1 / np.sqrt(a1 * a3)
    h = a3 / a1
    alpha = a2 * h - 1 - h**2
    c4 = c4_alignment(qts, 0.1, 30.0)
    assert not c4.validated
    assert c4.ripple_db == pytest.approx(0.5, abs=0.05)
    assert c4.tuning_hz == pytest.approx(30.0 * h, rel=2e-2)
    assert c4.alpha == pytest.approx(alpha, rel=3e-2)


def test_volume_for_f3_unreachable_reports_searched_range():
    # qts above 0.707: the F3 minimum lies at the lowest feasible Qtc
    driver = DriverParameters(fs=40.0, qts=0.9, vas=0.05)
    with pytest.raises(UnreachableTarget) as excinfo:
        find_volume_for_f3(driver, 20.0)
    qtc = 0.9 * 1.0001
    lowest = sealed_system(driver, find_volume_for_qtc(0.9, 0.05, qtc)).f3
    assert f"about {lowest:.1f} to" in str(excinfo.value)


def test_qb3_f3_for_high_fs_driver():
    qb3 = qb3_alignment(0.35, 0.002, 300.0)
    g = abs(ported_response_complex(qb3.f3_hz, 300.0, 300.0, qb3.alpha, 0.35, 7.0))
    assert 20 * np.log10(g) == pytest.approx(-3.0, abs=0.01)
    assert qb3.f3_hz == pytest.approx(440.3, rel=0.02)
