"""
errors.py
---------
Failure types of the transit pipeline.

DataUnavailable and CatalogRowMalformed never leave the fetch/parse
boundaries (they degrade to empty results). InvalidPrediction and
EmptyTrainingSet are surfaced to the caller.
"""


class TransitError(Exception):
    """Base class for pipeline errors."""


class DataUnavailable(TransitError):
    """Upstream file could not be fetched (network error, timeout, non-200)."""


class CatalogRowMalformed(TransitError, ValueError):
    """A catalog line is short, non-numeric, or has a non-positive transit time."""


class EmptyTrainingSet(TransitError):
    """No usable catalog rows were left to train on."""


class InvalidPrediction(TransitError, ValueError):
    """Predicted transit time is non-finite or not positive."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"transit time must be finite and > 0 hours, got {value!r}")
