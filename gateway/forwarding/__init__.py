"""Forwarding collaborators: where approved tool calls are executed.

- MockForwarder: canned text, no network (SUPABASE_FORWARDING=mock)
- LiveForwarder: Supabase Management API (default)
"""
from gateway.config import GatewayConfig
from gateway.forwarding.base import ForwardingCollaborator
from gateway.forwarding.live import LiveForwarder
from gateway.forwarding.mock import MockForwarder


def build_forwarder(config: GatewayConfig) -> ForwardingCollaborator:
    if config.is_mock:
        return MockForwarder()
    return LiveForwarder(config)
