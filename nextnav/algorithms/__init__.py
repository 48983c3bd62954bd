"""Prediction algorithms the engine can blend."""

from .frequency import FrequencyAlgorithm
from .markov import MarkovChainAlgorithm
from .design_flow import DesignFlowAlgorithm
from .classifier import ClassifierAlgorithm, NavigationClassifier

__all__ = [
    "FrequencyAlgorithm",
    "MarkovChainAlgorithm",
    "DesignFlowAlgorithm",
    "ClassifierAlgorithm",
    "NavigationClassifier",
]
