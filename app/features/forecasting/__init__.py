"""Revenue forecasting from monthly delivery history."""

from app.features.forecasting.models import BaseForecaster, FitResult, MeanForecaster

__all__ = ["BaseForecaster", "FitResult", "MeanForecaster"]
