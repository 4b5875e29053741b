#!/usr/bin/env python

import numpy as np
import gmmfit
from gmmfit import MixtureParameters


def generate_data(n_data=10000):
    dist_params = [
        (1, 1),
        (4, 2)
    ]

    weights = [0.3, 0.7]

    data = np.zeros((n_data,))
    for i in range(n_data):
        dpi = np.random.choice(range(len(dist_params)), p=weights)
        mu, sigma = dist_params[dpi]
        data[i] = np.random.normal(loc=mu, scale=sigma)

    return data


def recover(data):

    # a direct fit needs a good initial guess
    result = gmmfit.fit(data, MixtureParameters([1, 4], [1, 4], [0.3, 0.7]), progress_callback=gmmfit.simple_progress)
    print(result)

    # the multi-start search still needs an approximate one
    print("\nUsing multiple_fits()")
    result = gmmfit.multiple_fits(data, MixtureParameters([0, 6], [1, 1], [0.5, 0.5]), tol=1e-7)
    print(result)

    # the histogram estimate sometimes finds 3 components instead of 2
    print("\nUsing the histogram estimate as the initial guess")
    guess = gmmfit.Histogram(data).gmm_estimate_params()
    print(guess)
    result = gmmfit.multiple_fits(data, guess, tol=1e-7)
    print(result)


if __name__ == '__main__':
    data = generate_data()
    recover(data)
