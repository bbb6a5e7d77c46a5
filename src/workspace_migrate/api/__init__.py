"""Remote resource API access."""

from .client import APIResponse, ResourceClient
from .pacing import RequestPacer

__all__ = ['APIResponse', 'ResourceClient', 'RequestPacer']
