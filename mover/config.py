"""Configuration settings for the Syncthing mover."""

import os


SYNCTHING_CONTAINER_IMAGE = os.getenv("SYNCTHING_CONTAINER_IMAGE", "quay.io/backube/volsync-mover-syncthing:latest")

SYNCTHING_API_URL = os.getenv("SYNCTHING_API_URL", "")

SYNCTHING_VERIFY_TLS = os.getenv("SYNCTHING_VERIFY_TLS", "false").lower() in ("1", "true", "yes")

SYNCTHING_REQUEST_TIMEOUT = float(os.getenv("SYNCTHING_REQUEST_TIMEOUT", "30"))
SYNCTHING_MAX_RETRIES = int(os.getenv("SYNCTHING_MAX_RETRIES", "2"))
SYNCTHING_RETRY_BACKOFF = float(os.getenv("SYNCTHING_RETRY_BACKOFF", "2"))

SYNC_INTERVAL_SECONDS = int(os.getenv("SYNC_INTERVAL_SECONDS", "20"))
ERROR_RETRY_INTERVAL_SECONDS = int(os.getenv("ERROR_RETRY_INTERVAL_SECONDS", "20"))

_pass_timeout = os.getenv("PASS_TIMEOUT_SECONDS", "")
PASS_TIMEOUT_SECONDS = float(_pass_timeout) if _pass_timeout else None

CONFIG_PVC_SIZE = os.getenv("CONFIG_PVC_SIZE", "1Gi")
JOB_TTL_SECONDS = int(os.getenv("JOB_TTL_SECONDS", "100"))
SYNCTHING_CPU_LIMIT = os.getenv("SYNCTHING_CPU_LIMIT", "100m")
SYNCTHING_MEMORY_LIMIT = os.getenv("SYNCTHING_MEMORY_LIMIT", "1Gi")

KUBERNETES_SERVICE_HOST = os.getenv("KUBERNETES_SERVICE_HOST", "kubernetes.default.svc")
KUBERNETES_SERVICE_PORT = os.getenv("KUBERNETES_SERVICE_PORT", "443")
KUBERNETES_TOKEN_PATH = os.getenv(
    "KUBERNETES_TOKEN_PATH", "/var/run/secrets/kubernetes.io/serviceaccount/token"
)
KUBERNETES_CA_PATH = os.getenv(
    "KUBERNETES_CA_PATH", "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"
)
KUBERNETES_REQUEST_TIMEOUT = float(os.getenv("KUBERNETES_REQUEST_TIMEOUT", "30"))
