"""Builders for derived objects."""

from .secret import build_secret_annotations, build_secret_data, build_secret_labels, build_status

__all__ = [
    "build_secret_annotations",
    "build_secret_data",
    "build_secret_labels",
    "build_status",
]
