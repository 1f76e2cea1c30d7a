import pytest

from tsbox import DriverParameters


@pytest.fixture
def qb3_driver():
    # 15" woofer with a full parameter set
    return DriverParameters(
        fs=34.3, qts=0.35, vas=0.201, qms=4.1, re=5.4, sd=0.086,
        xmax=0.0085, pe=800.0,
    )


@pytest.fixture
def sealed_driver():
    # long-throw 18" subwoofer
    return DriverParameters(
        fs=22.0, qts=0.53, vas=0.2482, qms=2.53, re=4.2, sd=0.1184,
        xmax=0.022, pe=1000.0,
    )


@pytest.fixture
def minimal_driver():
    return DriverParameters(fs=27.4, qts=0.39, vas=0.185)
