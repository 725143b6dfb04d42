"""Feedback image rendering."""

from .scenes import HttpImageLoader, SceneRenderer

__all__ = ["HttpImageLoader", "SceneRenderer"]
