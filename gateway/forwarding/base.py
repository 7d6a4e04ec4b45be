"""Forwarding collaborator contract.

A forwarder executes an already-approved tool invocation. Gatekeeping has
happened before ``forward`` is called; forwarders never re-check policy.
"""
from typing import Any, Mapping, Optional, Protocol

from pydantic import BaseModel

from gateway.credentials import Credentials
from gateway.governance.pipeline import ToolInvocation


class ForwardingCollaborator(Protocol):
    # Whether a Supabase access token must accompany the request
    requires_token: bool

    async def forward(
        self,
        invocation: ToolInvocation,
        params: BaseModel,
        credentials: Credentials,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Any: ...
