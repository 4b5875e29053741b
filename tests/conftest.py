import numpy as np
import pytest

from gmmfit import MixtureParameters


def two_cluster_data(n_data, seed=42):
    """30% from N(1, 1) and 70% from N(4, 2^2)"""
    rs = np.random.RandomState(seed)
    first = rs.rand(n_data) < 0.3
    return np.where(first, rs.normal(1, 1, n_data), rs.normal(4, 2, n_data))


@pytest.fixture(scope='session')
def data():
    return two_cluster_data(10000)


@pytest.fixture(scope='session')
def small_data():
    return two_cluster_data(2000, seed=7)


@pytest.fixture
def good_seed():
    return MixtureParameters([1, 4], [1, 4], [0.3, 0.7])


@pytest.fixture
def poor_seed():
    return MixtureParameters([0, 6], [1, 1], [0.5, 0.5])
