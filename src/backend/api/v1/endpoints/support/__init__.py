"""Tech request and visit slot endpoints."""

from . import requests, slots

__all__ = [
    "requests",
    "slots",
]
