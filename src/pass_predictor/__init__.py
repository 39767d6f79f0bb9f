"""
Satellite Pass Predictor

Predicts when tracked satellites next pass nearly overhead of a ground
observer, using SGP4 propagation of two-line element sets.
"""

from .config import PredictionConfig
from .exceptions import ElementRetrievalFailed, MalformedElementSet, PropagationInvalid
from .orbit import ElementSet, OrbitPropagator
from .predictor import Observer, PassPredictor, PassResult, predict_next_pass
from .scheduler import PassScheduler

__version__ = "0.1.0"
__author__ = "Pass Predictor Team"

__all__ = [
    "ElementSet",
    "OrbitPropagator",
    "Observer",
    "PassPredictor",
    "PassResult",
    "PassScheduler",
    "PredictionConfig",
    "predict_next_pass",
    "MalformedElementSet",
    "PropagationInvalid",
    "ElementRetrievalFailed",
]
