# Agent configuration: defaults, optional JSON file, then environment variables
import json
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "agent_config.json")

# Environment variable for each setting
ENV_VARS = {
    "controller_address": "AGENT_CONTROLLER_ADDRESS",
    "disconnection_timeout_ms": "AGENT_DISCONNECTION_TIMEOUT_MS",
    "send_interval_ms": "AGENT_SEND_INTERVAL_MS",
    "progress_step": "AGENT_PROGRESS_STEP",
    "download_part_size": "AGENT_DOWNLOAD_PART_SIZE",
    "upload_chunk_size": "AGENT_UPLOAD_CHUNK_SIZE",
}


class AgentSettings(BaseModel):
    """
    Runtime settings of the agent.

    Attributes:
        controller_address: ZeroMQ endpoint of the controller
        disconnection_timeout_ms: Silence after which the link is considered stale
        send_interval_ms: Period of the outbound queue drain
        progress_step: Upload progress reporting granularity in percent
        download_part_size: Bytes per DownloadFilePart chunk
        upload_chunk_size: Bytes read per chunk while fetching uploads
    """

    controller_address: str = "tcp://127.0.0.1:5556"
    disconnection_timeout_ms: int = Field(default=5000, gt=0)
    send_interval_ms: int = Field(default=10, gt=0)
    progress_step: int = Field(default=5, gt=0, le=100)
    download_part_size: int = Field(default=64 * 1024, gt=0)
    upload_chunk_size: int = Field(default=64 * 1024, gt=0)


def _load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load settings overrides from a JSON file.

    Missing or unreadable files fall back to an empty override set.
    """
    try:
        if os.path.exists(config_path):
            with open(config_path, "r") as f:
                config = json.load(f)
            if not isinstance(config, dict):
                raise ValueError("top-level JSON value must be an object")
            logger.info(f"Loaded agent config from {config_path}")
            return config
    except Exception as e:
        logger.warning(f"Could not load agent config: {e}")
    return {}


def load_settings(config_path: Optional[str] = None, **overrides: Any) -> AgentSettings:
    """
    Build settings from defaults, config file, environment and explicit overrides.

    Later sources win. ``.env`` files are honoured through python-dotenv.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range
    """
    load_dotenv()

    values: Dict[str, Any] = _load_config_file(config_path or DEFAULT_CONFIG_PATH)

    for field, env_var in ENV_VARS.items():
        env_value = os.getenv(env_var)
        if env_value:
            values[field] = env_value

    values.update({key: value for key, value in overrides.items() if value is not None})

    # Unknown keys in the file are ignored rather than rejected
    known = {key: value for key, value in values.items() if key in AgentSettings.model_fields}
    return AgentSettings(**known)
