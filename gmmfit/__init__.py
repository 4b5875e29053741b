"""
Expectation-Maximization fitting of one dimensional Gaussian mixtures, with a
multi-start search and a histogram based initial guess.
"""


from ._version import __version__
from .errors import GMMError, InvalidInput, DegenerateComponent, NumericOverflow, NoValidFit
from .model import MixtureParameters, FitResult, probability
from .density import GaussianDensity
from .progress import simple_progress, logged_simple_progress
from .em import fit
from .search import multiple_fits
from .histogram import Histogram
from .classify import categorize, Assigned, UNASSIGNED
