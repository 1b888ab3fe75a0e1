"""
Human-readable summaries of detection results
"""
from typing import Dict, Iterable, List

from fracturelab.services.editor.geometry import DetectionBox

NO_DETECTIONS = "No detection found"


def summarize_detections(detections: Iterable[DetectionBox]) -> str:
    """
    Describe detections grouped by class, in first-seen order

    Example:
        "The image contains 2 fractures (87%, 50% confidence), and 1 cast (90% confidence)"
    """
    grouped: Dict[str, List[float]] = {}
    for box in detections:
        grouped.setdefault(box.label, []).append(box.confidence)

    if not grouped:
        return NO_DETECTIONS

    phrases = []
    for label, confidences in grouped.items():
        count = len(confidences)
        plural = "s" if count > 1 else ""
        percents = ", ".join(f"{c * 100:.0f}%" for c in confidences)
        phrases.append(f"{count} {label}{plural} ({percents} confidence)")

    summary = f"The image contains {phrases[0]}"
    for index, phrase in enumerate(phrases[1:], start=1):
        if index == len(phrases) - 1:
            summary += f", and {phrase}"
        else:
            summary += f", {phrase}"
    return summary
