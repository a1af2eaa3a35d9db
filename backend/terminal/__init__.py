"""
Terminal collaborators: rendering and keyboard input.
"""

from .base import Renderer, KeySource

__all__ = [
    'Renderer',
    'KeySource',
]
