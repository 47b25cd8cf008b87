"""AWS SDK configuration for the tools.

The services factory and CLI import from this module to keep botocore client
tuning in one place.
"""

from botocore.config import Config

from infra.config import get_settings
from version import ENGINE_NAME, ENGINE_VERSION

_AWS_CFG = get_settings().aws

SDK_CONFIG = Config(
    retries={"max_attempts": int(_AWS_CFG.max_retries), "mode": "adaptive"},
    user_agent_extra=f"{ENGINE_NAME}/{ENGINE_VERSION}",
    connect_timeout=int(_AWS_CFG.connect_timeout),
    read_timeout=int(_AWS_CFG.timeout),
)

DEFAULT_REGION: str = _AWS_CFG.default_region
