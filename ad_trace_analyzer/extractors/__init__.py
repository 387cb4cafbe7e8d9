"""Classification and geometry helpers used by the audits."""

from .classifier import Classifier, PublisherAdsClassifier
from .geometry import overlaps, to_client_rect

__all__ = ["Classifier", "PublisherAdsClassifier", "overlaps", "to_client_rect"]
