"""Kubernetes access for the Syncthing mover."""

from mover.kube.client import KubeClient
from mover.kube.resources import ResourceDriver

__all__ = [
    "KubeClient",
    "ResourceDriver",
]
