import logging
import os

from logplane.models import PipelineDefaults

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_CHANNEL = os.getenv("REDIS_CHANNEL", "logplane_updates")
REDIS_KEY = os.getenv("REDIS_KEY", "logplane_config")

# Filesystem buffer ceiling per output
FS_BUFFER_LIMIT = os.getenv("FS_BUFFER_LIMIT", "1G")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def load_defaults() -> PipelineDefaults:
    return PipelineDefaults(fs_buffer_limit=FS_BUFFER_LIMIT)


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
