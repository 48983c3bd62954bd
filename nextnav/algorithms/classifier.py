"""
Classifier algorithm - supervised next-page model.

Learns (current page, previous page, user, hour, weekday) -> next page
from consecutive events of each user, using a scikit-learn pipeline:
- DictVectorizer one-hot encodes the categorical fields
- LogisticRegression yields a probability per known destination

The fitted model is pickled to disk so it survives restarts.
"""

import asyncio
import logging
import os
import pickle
import tempfile
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from sklearn.dummy import DummyClassifier
from sklearn.feature_extraction import DictVectorizer
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score
from sklearn.pipeline import Pipeline

from ..exceptions import ModelPersistenceError
from ..interfaces import NavigationCatalog, ProgressReporter
from ..models import NavigationEvent, SuggestedItem

logger = logging.getLogger(__name__)

NO_PREVIOUS_PAGE = "NONE"


def build_features(
    user_id: str,
    current_page: str,
    previous_page: Optional[str],
    when: datetime,
) -> dict:
    """Feature dict for one (hypothetical) navigation step."""
    return {
        "user_id": user_id,
        "current_page": current_page,
        "previous_page": previous_page or NO_PREVIOUS_PAGE,
        "hour_of_day": float(when.hour),
        "day_of_week": float(when.weekday()),
    }


class NavigationClassifier:
    """Thin wrapper around the fitted pipeline: fit once, score all labels."""

    def __init__(self, pipeline: Pipeline):
        self.pipeline = pipeline

    @classmethod
    def fit(cls, features: list[dict], labels: list[str]) -> "NavigationClassifier":
        """
        Fit a classifier on feature dicts.

        LogisticRegression needs two classes; with a single destination a
        prior-only model is used instead.
        """
        if len(set(labels)) < 2:
            estimator = DummyClassifier(strategy="prior")
        else:
            estimator = LogisticRegression(max_iter=1000)

        pipeline = Pipeline([
            ("vectorizer", DictVectorizer(sparse=True)),
            ("classifier", estimator),
        ])
        pipeline.fit(features, labels)
        return cls(pipeline)

    @property
    def labels(self) -> list[str]:
        return [str(label) for label in self.pipeline.classes_]

    def score_all(self, features: dict) -> np.ndarray:
        """Probability for every known label, in `labels` order."""
        return np.asarray(self.pipeline.predict_proba([features])[0], dtype=np.float64)

    def evaluate(self, features: list[dict], labels: list[str]) -> float:
        """Accuracy on the given samples."""
        return float(accuracy_score(labels, self.pipeline.predict(features)))


class ClassifierAlgorithm:
    """
    Next-page classifier over the full navigation history.

    Candidate destinations come from the navigation catalog, falling back
    to the labels seen during training.
    """

    name = "Classifier"
    DEFAULT_WEIGHT = 2.0

    def __init__(
        self,
        model_path: Optional[Path] = None,
        weight: float = DEFAULT_WEIGHT,
        catalog: Optional[NavigationCatalog] = None,
    ):
        """
        Initialize the classifier and load a previously saved model.

        Args:
            model_path: Where the fitted model is persisted
            weight: Multiplier applied to class probabilities
            catalog: Optional catalog of candidate destinations
        """
        self.model_path = Path(model_path) if model_path else Path("navigation_model.pkl")
        self.weight = weight
        self.catalog = catalog

        self.model: Optional[NavigationClassifier] = None
        self.label_index: dict[str, int] = {}
        self.n_samples = 0
        self.last_accuracy: Optional[float] = None

        self._load_model()

    def set_navigation_catalog(self, catalog: NavigationCatalog) -> None:
        self.catalog = catalog
        logger.info("Navigation catalog set on classifier")

    @staticmethod
    def prepare_training_data(
        events: Sequence[NavigationEvent],
    ) -> tuple[list[dict], list[str]]:
        """
        Pair consecutive events of each user into supervised samples.

        A user with N events yields N-1 samples; the label is the page
        visited next.
        """
        by_user: dict[str, list[NavigationEvent]] = defaultdict(list)
        for event in events:
            by_user[event.user_id].append(event)

        features: list[dict] = []
        labels: list[str] = []
        for user_events in by_user.values():
            ordered = sorted(user_events, key=lambda e: e.timestamp)
            for current, following in zip(ordered, ordered[1:]):
                features.append(build_features(
                    current.user_id,
                    current.current_page_or_feature,
                    current.previous_page_or_feature,
                    current.timestamp,
                ))
                labels.append(following.current_page_or_feature)

        logger.info(f"Prepared {len(features)} classifier samples from {len(events)} events")
        return features, labels

    async def train(self, events: Sequence[NavigationEvent], reporter: ProgressReporter) -> None:
        reporter.report_progress(self.name, "Preparing training samples", 0)

        features, labels = self.prepare_training_data(events)
        if not features:
            logger.info("Not enough navigation history for the classifier, clearing model")
            self._set_model(None)
            self.n_samples = 0
            reporter.report_progress(self.name, "Insufficient data", 100, True)
            return

        reporter.report_progress(self.name, "Fitting model", 40)
        model = await asyncio.to_thread(NavigationClassifier.fit, features, labels)

        accuracy = await asyncio.to_thread(model.evaluate, features, labels)
        logger.info(f"Classifier trained on {len(features)} samples, training accuracy {accuracy:.2%}")

        # The in-memory model only changes once the file on disk matches it
        reporter.report_progress(self.name, "Saving model", 80)
        await asyncio.to_thread(self._save_model, model)

        self._set_model(model)
        self.n_samples = len(features)
        self.last_accuracy = accuracy

        reporter.report_progress(self.name, "Model ready", 100, True)

    async def predict(
        self,
        user_id: str,
        current_context: Optional[str],
        max_results: int,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]:
        if self.model is None or not current_context:
            logger.debug("Classifier has no model or no current context, skipping prediction")
            return []

        candidates = list(self.catalog.get_all_available_navigation_items()) if self.catalog else []
        if not candidates:
            candidates = self.model.labels
        if not candidates:
            logger.debug("No candidate destinations for the classifier")
            return []

        previous_page = (context_data or {}).get("PreviousPage")
        query = build_features(user_id, current_context, previous_page, datetime.now(timezone.utc))
        scores = self.model.score_all(query)

        suggestions = []
        for destination in candidates:
            index = self.label_index.get(destination.casefold())
            if index is None or index >= len(scores):
                continue
            suggestions.append(SuggestedItem(
                name=destination,
                score=float(scores[index]) * self.weight,
                reason=self.name,
            ))

        suggestions.sort(key=lambda s: s.score, reverse=True)
        return suggestions[:max(max_results, 0)]

    def _set_model(self, model: Optional[NavigationClassifier]) -> None:
        self.model = model
        self.label_index = {}
        if model is not None:
            for i, label in enumerate(model.labels):
                self.label_index.setdefault(label.casefold(), i)

    def _save_model(self, model: NavigationClassifier) -> None:
        """Write the model next to its final path, then swap it in."""
        try:
            self.model_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.model_path.parent, prefix=f".{self.model_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    pickle.dump({"pipeline": model.pipeline}, f)
                os.replace(tmp_path, self.model_path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ModelPersistenceError("save", str(self.model_path), str(e)) from e

        logger.info(f"Classifier model saved to {self.model_path}")

    def _load_model(self) -> None:
        if not self.model_path.exists():
            logger.info(f"No classifier model at {self.model_path}, a new one will be trained")
            return

        try:
            with open(self.model_path, "rb") as f:
                payload = pickle.load(f)
            self._set_model(NavigationClassifier(payload["pipeline"]))
            logger.info(f"Classifier model loaded from {self.model_path}")
        except (OSError, EOFError, pickle.UnpicklingError, KeyError, AttributeError, ImportError, TypeError) as e:
            logger.warning(f"Could not load classifier model from {self.model_path}: {e}")
            self._set_model(None)

    def get_stats(self) -> dict:
        return {
            "weight": self.weight,
            "trained": self.model is not None,
            "n_labels": len(self.label_index),
            "n_samples": self.n_samples,
            "training_accuracy": self.last_accuracy,
            "model_path": str(self.model_path),
        }
