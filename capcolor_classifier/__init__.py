"""
Capcolor Classifier
===================

Bounded Context: Dominant color classification of zone images.

Two interchangeable strategies behind one protocol
(`classify(zone_image) -> ColorResult`):

- RemoteColorClassifier: JPEG bytes -> vision model (Gemini) -> JSON color
- LocalColorClassifier: RGB pixels -> mean color -> nearest palette entry

Both resolve every failure into a well-formed ColorResult; the scheduler
never sees a classifier exception for bad input or a failed backend.

Usage:
    from capcolor_classifier import create_classifier

    classifier = create_classifier("local")
    result = await classifier.classify(zone_image)
"""

from typing import Optional, Sequence

from capcolor_classifier.base import (
    ERROR_HEX,
    ERROR_RESULT,
    NONE_HEX,
    NONE_RESULT,
    ColorClassifier,
    ColorResult,
    ZoneColorResult,
)
from capcolor_classifier.palette import DEFAULT_PALETTE, PaletteEntry
from capcolor_classifier.local import ClassifierThresholds, LocalColorClassifier
from capcolor_classifier.remote import (
    GeminiBackend,
    InferenceBackend,
    RemoteColorClassifier,
)

CLASSIFICATION_MODES = ("remote", "local")


def create_classifier(
    mode: str,
    palette: Sequence[PaletteEntry] = DEFAULT_PALETTE,
    thresholds: ClassifierThresholds = ClassifierThresholds(),
    backend: Optional[InferenceBackend] = None,
    timeout_s: float = 10.0,
) -> ColorClassifier:
    """
    Build the classifier for a classification mode.

    Args:
        mode: "remote" or "local"
        palette: Reference palette (local mode)
        thresholds: Rejection bounds (local mode)
        backend: Inference backend (remote mode, required)
        timeout_s: Per-request timeout (remote mode)

    Raises:
        ValueError: Unknown mode, or remote mode without a backend
    """
    if mode == "local":
        return LocalColorClassifier(palette=palette, thresholds=thresholds)
    if mode == "remote":
        if backend is None:
            raise ValueError("Remote classification requires an inference backend")
        return RemoteColorClassifier(backend=backend, timeout_s=timeout_s)
    raise ValueError(
        f"Invalid classification mode: {mode}. Must be one of {CLASSIFICATION_MODES}"
    )


__all__ = [
    "CLASSIFICATION_MODES",
    "ColorClassifier",
    "ColorResult",
    "ZoneColorResult",
    "ERROR_HEX",
    "ERROR_RESULT",
    "NONE_HEX",
    "NONE_RESULT",
    "DEFAULT_PALETTE",
    "PaletteEntry",
    "ClassifierThresholds",
    "LocalColorClassifier",
    "GeminiBackend",
    "InferenceBackend",
    "RemoteColorClassifier",
    "create_classifier",
]
