"""
Classification

Prompt construction, output parsing and the Intent Classifier.
"""

from condo_messaging.classification.classifier import IntentClassifier
from condo_messaging.classification.parser import (
    fallback_classification,
    parse_classification,
    strip_code_fence,
)
from condo_messaging.classification.prompt import build_classification_prompt

__all__ = [
    "IntentClassifier",
    "build_classification_prompt",
    "fallback_classification",
    "parse_classification",
    "strip_code_fence",
]
