"""Exceptions raised while fitting Gaussian mixtures."""


class GMMError(Exception):
    """Base class for all gmmfit errors."""


class InvalidInput(GMMError, ValueError):
    """Data or seed parameters are unusable. Raised before any iteration."""


class DegenerateComponent(GMMError):
    """A component collapsed during an M-step (zero weight or zero variance)."""

    def __init__(self, component, message):
        super(DegenerateComponent, self).__init__(component, message)
        self.component = component
        self.message = message

    def __str__(self):
        return "component %d: %s" % (self.component, self.message)


class NumericOverflow(GMMError, ArithmeticError):
    """A density or log-likelihood is no longer a finite number."""


class NoValidFit(GMMError):
    """No candidate of a multi-start search produced a valid fit."""
