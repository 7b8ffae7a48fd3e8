"""Layer persistence interfaces and implementations."""

from .base import Layer, LayerStore
from .filesystem import FilesystemLayer, FilesystemLayerStore
from .inprocess import InProcessLayer, InProcessLayerStore

__all__ = [
    "FilesystemLayer",
    "FilesystemLayerStore",
    "InProcessLayer",
    "InProcessLayerStore",
    "Layer",
    "LayerStore",
]
