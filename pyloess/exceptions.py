"""
Exception hierarchy for PyLoess.

All estimation failures carry the name of the variable being estimated and the
stage of the pipeline that failed ('validation', 'indexing', 'weighting' or
'solve'), so that callers can tell a bad configuration apart from a numerical
breakdown at a single location. Each class also subclasses the matching
built-in exception, so code catching ``ValueError`` or
``numpy.linalg.LinAlgError`` keeps working.
"""

from typing import Optional

import numpy as np


class PyLoessError(Exception):
    """Base exception for all PyLoess errors."""


class EstimationError(PyLoessError):
    """
    Failure while estimating a variable.

    Parameters
    ----------
    message : str
        Human readable description of the failure
    variable : str, optional
        Name of the variable being estimated
    stage : str, optional
        Pipeline stage that failed
    location : int, optional
        Index of the query location, for per-location failures
    """

    def __init__(
        self,
        message: str,
        variable: Optional[str] = None,
        stage: Optional[str] = None,
        location: Optional[int] = None,
    ):
        self.message = message
        self.variable = variable
        self.stage = stage
        self.location = location
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.variable is not None:
            context.append(f"variable '{self.variable}'")
        if self.stage is not None:
            context.append(f"stage '{self.stage}'")
        if self.location is not None:
            context.append(f"location {self.location}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(EstimationError, ValueError):
    """Invalid input data or parameters, raised before any computation starts."""


class NeighborCountError(ConfigurationError):
    """Requested neighbor count outside [1, number of observations]."""


class NegativeWeightError(EstimationError, ValueError):
    """Kernel produced negative weights; the variogram model is not valid."""


class NumericalError(EstimationError, np.linalg.LinAlgError):
    """Numerical breakdown while solving a local regression."""


class SingularSystemError(NumericalError):
    """Weighted normal-equations matrix is singular or ill-conditioned."""


class SingularSystemWarning(UserWarning):
    """Some locations could not be solved and were filled with NaN."""
