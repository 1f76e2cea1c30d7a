import numpy as np
import pytest

from tsbox import (
    Sealed, Ported, SealedSystem, PortedSystem, system_parameters,
    sealed_response_db, sealed_f3, ported_response_db, ported_response_complex, ported_f3,
    find_volume_for_qtc, BUTTERWORTH, port_area,
)
from tsbox.constants import DB_FLOOR
from tsbox.transfer import vented_coefficients, sealed_system, magnitude_to_db, ported_displacement_complex


def test_butterworth_is_3db_down_at_fc():
    level = sealed_response_db(50.0, 50.0, BUTTERWORTH)
    assert -4.0 <= level <= -2.0
    assert level == pytest.approx(-3.01, abs=0.01)
    assert sealed_f3(50.0, BUTTERWORTH) == pytest.approx(50.0)


def test_sealed_response_at_f3_is_3db_down():
    for qtc in (0.5, 0.577, 0.9, 1.2):
        f3 = sealed_f3(40.0, qtc)
        assert sealed_response_db(f3, 40.0, qtc) == pytest.approx(-3.0103, abs=1e-3)


def test_sealed_low_frequency_is_monotonic_and_finite():
    f = np.array([10.0, 3.0, 1.0, 0.3, 0.1, 0.01])
    db = sealed_response_db(f, 50.0, 0.707)
    assert np.all(np.isfinite(db))
    assert np.all(np.diff(db) < 0)
    assert sealed_response_db(0.0, 50.0, 0.707) == DB_FLOOR
    assert np.isfinite(sealed_response_db(1e-9, 50.0, 0.707))


def test_sealed_passband_is_flat():
    assert abs(sealed_response_db(100 * 50.0, 50.0, 0.707)) < 0.5
    assert abs(sealed_response_db(100 * 50.0, 50.0, 1.1)) < 0.5


def test_scalar_in_scalar_out():
    assert isinstance(sealed_response_db(30.0, 50.0, 0.707), float)
    assert isinstance(ported_response_db(30.0, 34.3, 34.3, 2.13, 0.35), float)
    assert sealed_response_db(np.array([30.0, 40.0]), 50.0, 0.707).shape == (2,)


def test_magnitude_floor():
    assert magnitude_to_db(0.0) == DB_FLOOR
    assert magnitude_to_db(np.nan) == DB_FLOOR
    assert magnitude_to_db(1.0) == pytest.approx(0.0)


def test_butterworth_scenario(minimal_driver):
    volume = find_volume_for_qtc(minimal_driver.qts, minimal_driver.vas, BUTTERWORTH)
    assert volume == pytest.approx(0.0809, abs=5e-4)
    system = sealed_system(minimal_driver, volume)
    assert system.qtc == pytest.approx(BUTTERWORTH)
    assert system.fc == pytest.approx(49.7, abs=1.0)
    assert system.f3 == pytest.approx(49.7, abs=1.0)


def test_fixed_volume_scenario(sealed_driver):
    system = system_parameters(sealed_driver, Sealed(0.330))
    assert isinstance(system, SealedSystem)
    assert system.qtc == pytest.approx(0.707, abs=0.01)
    assert system.fc == pytest.approx(29.1, abs=1.0)
    assert system.alpha == pytest.approx(0.2482 / 0.330)


def test_vented_coefficients_lossless_limit():
    lossless = vented_coefficients(1.4, 1.1, 0.38, np.inf)
    nearly = vented_coefficients(1.4, 1.1, 0.38, 1e12)
    assert np.allclose(lossless, nearly, rtol=1e-9)
    a1, a2, a3 = lossless
    assert a1 == pytest.approx(1 / (np.sqrt(1.1) * 0.38))
    assert a2 == pytest.approx((1.4 + 1 + 1.1**2) / 1.1)
    assert a3 == pytest.approx(np.sqrt(1.1) / 0.38)


def test_ported_passband_and_dc():
    args = (34.3, 34.3, 2.13, 0.35)
    assert abs(ported_response_db(2000.0, *args)) < 0.5
    assert ported_response_db(1e5, *args) == pytest.approx(0.0, abs=1e-3)
    assert ported_response_db(200.0, *args, reference_hz=200.0) == pytest.approx(0.0, abs=1e-9)
    assert ported_response_db(0.0, *args) == DB_FLOOR
    assert abs(ported_response_complex(1e5, *args)) == pytest.approx(1.0, abs=1e-3)


def test_ported_rolls_off_faster_than_sealed(qb3_driver):
    volume = 15 * 0.35**3.3 * 0.201
    alpha = qb3_driver.vas / volume
    sealed = sealed_system(qb3_driver, volume)
    ported_drop = ported_response_db(5.0, 34.3, 34.3, alpha, 0.35) - ported_response_db(2.5, 34.3, 34.3, alpha, 0.35)
    sealed_drop = sealed_response_db(5.0, sealed.fc, sealed.qtc) - sealed_response_db(2.5, sealed.fc, sealed.qtc)
    assert ported_drop > 20.0
    assert sealed_drop < 14.0


def test_losses_lower_the_level_at_tuning():
    args = (34.3, 34.3, 2.13, 0.35)
    lossless = ported_response_db(34.3, *args, ql=np.inf)
    lossy = ported_response_db(34.3, *args, ql=7.0)
    very_lossy = ported_response_db(34.3, *args, ql=3.0)
    assert lossless > lossy > very_lossy


def test_ported_f3_is_on_the_curve():
    f3 = ported_f3(34.3, 34.3, 2.13, 0.35, 7.0)
    assert 30.0 < f3 < 60.0
    assert ported_response_db(f3, 34.3, 34.3, 2.13, 0.35, 7.0) == pytest.approx(-3.0, abs=0.01)
    assert ported_response_db(1.2 * f3, 34.3, 34.3, 2.13, 0.35, 7.0) > -3.0


def test_system_parameters_dispatch(qb3_driver):
    box = Ported.from_tuning(0.0943, 34.3, port_area(0.1))
    system = system_parameters(qb3_driver, box)
    assert isinstance(system, PortedSystem)
    assert system.h == pytest.approx(1.0)
    assert system.ql == 7.0
    with pytest.raises(TypeError):
        system_parameters(qb3_driver, object())


def test_high_fs_ported_response_is_relative_to_passband():
    # fs = 150 Hz: a fixed 200 Hz reference would sit on the rolloff
    args = (150.0, 150.0, 2.0, 0.38)
    g = np.abs(ported_response_complex([150.0, 300.0, 600.0], *args))
    assert np.allclose(ported_response_db([150.0, 300.0, 600.0], *args), 20 * np.log10(g))
    f3 = ported_f3(*args)
    assert f3 > 150.0
    assert abs(ported_response_complex(f3, *args)) == pytest.approx(10**(-3 / 20), rel=1e-3)


def test_ported_displacement_null_and_static_value():
    args = (34.3, 34.3, 2.13, 0.35)
    assert abs(ported_displacement_complex(0.0, *args)) == pytest.approx(1.0)
    assert abs(ported_displacement_complex(34.3, *args, ql=np.inf)) < 1e-9
    lossy = np.abs(ported_displacement_complex(np.array([0.8, 1.0, 1.25]) * 34.3, *args, ql=7.0))
    assert lossy[1] < lossy[0]
    assert lossy[1] < lossy[2]
