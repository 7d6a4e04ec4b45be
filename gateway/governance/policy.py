"""Policy configuration loading.

Loads config from env vars (primary) and an optional YAML file, then
builds the immutable AccessPolicyConfig the pipeline runs on. Business
logic never reads the environment directly; everything flows through here.
"""
import os
import logging
from pathlib import Path
from typing import Optional

import yaml

from gateway.governance.tool_guard import AccessPolicyConfig

logger = logging.getLogger(__name__)


def _load_yaml_config(path: str) -> dict:
    """Load the ``policy:`` section of a YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Policy config file not found: {path}")
        return {}

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return data.get("policy", {}) or {}


def _parse_env_list(env_var: str) -> Optional[list[str]]:
    """Parse comma-separated env var into list. Returns None if unset."""
    val = os.environ.get(env_var, "").strip()
    if not val:
        return None
    items = [item.strip() for item in val.split(",") if item.strip()]
    return items or None


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def load_policy_config(yaml_path: Optional[str] = None) -> AccessPolicyConfig:
    """Load policy settings from env vars + optional YAML.

    Env vars take precedence over YAML for every setting. An unset or
    empty allow-list leaves that dimension unrestricted.
    """
    if yaml_path is None:
        yaml_path = os.environ.get("SUPABASE_POLICY_CONFIG", "")
    yaml_data = _load_yaml_config(yaml_path) if yaml_path else {}

    read_only_env = os.environ.get("SUPABASE_READ_ONLY")
    if read_only_env is not None and read_only_env.strip():
        read_only = _parse_bool(read_only_env)
    else:
        read_only = _parse_bool(yaml_data.get("read_only", False))

    config = AccessPolicyConfig.from_lists(
        read_only=read_only,
        allowed_projects=_parse_env_list("SUPABASE_ALLOWED_PROJECTS")
        or yaml_data.get("allowed_projects"),
        allowed_schemas=_parse_env_list("SUPABASE_ALLOWED_SCHEMAS")
        or yaml_data.get("allowed_schemas"),
        allowed_tables=_parse_env_list("SUPABASE_ALLOWED_TABLES")
        or yaml_data.get("allowed_tables"),
        blocked_operations=_parse_env_list("SUPABASE_BLOCKED_OPERATIONS")
        or yaml_data.get("blocked_operations"),
    )

    logger.info(
        f"Policy: read_only={config.read_only}, "
        f"projects={len(config.allowed_projects) or 'all'}, "
        f"schemas={len(config.allowed_schemas) or 'all'}, "
        f"tables={len(config.allowed_tables) or 'all'}, "
        f"blocked={len(config.blocked_operations)}"
    )
    return config
