# coding=utf-8
import collections

import numpy as np

from .density import GaussianDensity
from .model import as_data

SIGMA_ENVELOPE = 3


Assigned = collections.namedtuple('Assigned', ['component', 'probability'])


class _Unassigned(object):
    """A sample outside the 3-sigma envelope of every component."""

    component = None
    probability = None

    def __repr__(self):
        return "UNASSIGNED"

    def __reduce__(self):
        return "UNASSIGNED"


UNASSIGNED = _Unassigned()


def categorize(data, params, n_sigma=SIGMA_ENVELOPE):
    """Assign every sample to its most likely component.

    A sample is :data:`UNASSIGNED` when it lies outside mean_k +/- n_sigma * sqrt(variance_k)
    for every component k. Otherwise it gets ``Assigned(k, p)`` where k maximizes
    weight_k * f_k(x) and p is that component's posterior share among all components.

    :rtype: list of :class:`Assigned` or :data:`UNASSIGNED`
    """
    data = as_data(data)
    params = params.copy().validate()

    weighted = GaussianDensity(params).weighted_densities(data)
    in_range = np.any(np.abs(data[:, np.newaxis] - params.mean[np.newaxis, :]) <= n_sigma * np.sqrt(params.variance)[np.newaxis, :], axis=1)

    label = np.argmax(weighted, axis=1)
    total = np.sum(weighted, axis=1)

    result = []
    for i in range(data.shape[0]):
        if not in_range[i] or total[i] <= 0:
            result.append(UNASSIGNED)
        else:
            k = int(label[i])
            result.append(Assigned(k, float(weighted[i, k] / total[i])))

    return result


def to_arrays(categories):
    """Flatten categorize() output into (component, probability) arrays for export; -1 and NaN mark unassigned samples"""
    component = np.array([-1 if c is UNASSIGNED else c.component for c in categories], dtype=int)
    probability = np.array([np.nan if c is UNASSIGNED else c.probability for c in categories], dtype=float)
    return component, probability
