"""Classifier module."""

from .classifier import IMessageClassifier, MessageClassifier

__all__ = ["IMessageClassifier", "MessageClassifier"]
