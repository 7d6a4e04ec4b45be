"""Supabase MCP gateway — main entry point.

HTTP bridge (/mcp SSE, /tools, /health, /security) plus the native
streamable-HTTP MCP server under /native, both behind one gatekeeping pipeline.
"""
import logging

import uvicorn

from gateway.config import config
from gateway.forwarding import build_forwarder
from gateway.governance.pipeline import build_pipeline
from gateway.governance.policy import load_policy_config
from gateway.http import create_app
from gateway.mcp_server import build_mcp_server
from gateway.service import GatewayService

logging.basicConfig(level=config.log_level)
logger = logging.getLogger(__name__)

# Build access policy (env vars + optional YAML)
policy_config = load_policy_config()

service = GatewayService(
    config,
    pipeline=build_pipeline(policy_config, config.sql_guard),
    forwarder=build_forwarder(config),
)
mcp = build_mcp_server(service)
app = create_app(service, mcp)


def main():
    logger.info(f"Listening on 0.0.0.0:{config.port}")
    uvicorn.run(app, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
