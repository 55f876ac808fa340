"""Forecasting models with a fit/predict interface.

Forecasters work on a 1D array of monthly totals (oldest first) and
project ``horizon`` future months.

- fit(y) -> self
- predict(horizon) -> np.ndarray
- get_params() -> dict
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import numpy as np

from app.core.exceptions import InsufficientDataError

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]


@dataclass
class FitResult:
    """Result of model fitting.

    Attributes:
        n_observations: Number of monthly totals used for fitting.
        level: Value projected forward.
    """

    n_observations: int
    level: float


class BaseForecaster(ABC):
    """Abstract base class for monthly forecasters."""

    def __init__(self) -> None:
        self._is_fitted = False
        self._fit_result: FitResult | None = None

    @abstractmethod
    def fit(self, y: FloatArray) -> BaseForecaster:
        """Fit the model on monthly history.

        Raises:
            InsufficientDataError: If ``y`` has no observations.
        """

    @abstractmethod
    def predict(self, horizon: int) -> FloatArray:
        """Forecast ``horizon`` months.

        Raises:
            RuntimeError: If the model has not been fitted.
        """

    @abstractmethod
    def get_params(self) -> dict[str, Any]:
        """Model parameters."""

    @property
    def is_fitted(self) -> bool:
        return self._is_fitted

    @property
    def fit_result(self) -> FitResult | None:
        return self._fit_result


class MeanForecaster(BaseForecaster):
    """Flat projection of the mean monthly total.

    Formula: y_hat[t+h] = mean(y) for every h

    No trend or seasonality is fitted.
    """

    def __init__(self) -> None:
        super().__init__()
        self._level: float = 0.0

    def fit(self, y: FloatArray) -> MeanForecaster:
        """Store the mean of all observations.

        Raises:
            InsufficientDataError: If ``y`` is empty.
        """
        values = np.asarray(y, dtype=np.float64)
        if values.size == 0:
            raise InsufficientDataError(details={"n_observations": 0})
        self._level = float(np.mean(values))
        self._fit_result = FitResult(n_observations=int(values.size), level=self._level)
        self._is_fitted = True
        return self

    def predict(self, horizon: int) -> FloatArray:
        if not self._is_fitted:
            raise RuntimeError("Model must be fitted before predict")
        if horizon < 0:
            raise ValueError(f"horizon must be >= 0, got {horizon}")
        return np.full(horizon, self._level, dtype=np.float64)

    def get_params(self) -> dict[str, Any]:
        return {"model_type": "mean"}
