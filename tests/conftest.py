"""Shared pytest fixtures for all tests."""

import pytest

from tests.fakes import FakeKubeClient


@pytest.fixture
def fake_kube():
    """Fake cluster with the caller-provisioned data PVC in namespace 'ns1'."""
    kube = FakeKubeClient()
    kube.add("PersistentVolumeClaim", "ns1", {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": "data-pvc", "namespace": "ns1"},
    })
    return kube


@pytest.fixture
def empty_kube():
    """Fake cluster without any objects."""
    return FakeKubeClient()
