# coding=utf-8
from logging import getLogger
logger = getLogger(__name__)

def simple_progress(iteration, params, log_likelihood):
    """A simple progress callback printing every accepted iteration of gmmfit.em.fit"""

    print("iteration {iteration:4d} (log-likelihood={log_likelihood:.5e}): p(x|Φ) = {params}".format(
        iteration=iteration,
        log_likelihood=log_likelihood,
        params=params
    ))

def logged_simple_progress(iteration, params, log_likelihood):

    logger.info("iteration {iteration:4d} (log-likelihood={log_likelihood:.5e}): p(x|Φ) = {params}".format(
        iteration=iteration,
        log_likelihood=log_likelihood,
        params=params
    ))
