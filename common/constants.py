"""Project-wide constants (resource names, ports, mount paths)."""

APP_LABEL_NAME: str = "syncthing"

CONFIG_PVC_NAME: str = "syncthing-config"
SYNCTHING_JOB_NAME: str = "syncthing"
SYNCTHING_CONTAINER_NAME: str = "syncthing"
API_KEY_SECRET_NAME: str = "syncthing-apikey"
API_KEY_SECRET_FIELD: str = "apikey"
API_SERVICE_NAME: str = "syncthing-api"
DATA_SERVICE_NAME: str = "syncthing-data"

SYNCTHING_API_PORT: int = 8384
SYNCTHING_DATA_PORT: int = 22000

DATA_DIR_ENV: str = "SYNCTHING_DATA_DIR"
DATA_DIR_MOUNT_PATH: str = "/data"
CONFIG_DIR_ENV: str = "SYNCTHING_CONFIG_DIR"
CONFIG_DIR_MOUNT_PATH: str = "/config"
API_KEY_ENV: str = "STGUIAPIKEY"

CONFIG_VOLUME_NAME: str = "syncthing-config"
DATA_VOLUME_NAME: str = "syncthing-data"

DYNAMIC_ADDRESS: str = "dynamic"
