"""Canned responses for demos and n8n workflow wiring. No network access."""
import json
import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from gateway.credentials import Credentials
from gateway.governance.pipeline import ToolInvocation

logger = logging.getLogger(__name__)


class MockForwarder:
    requires_token = False

    async def forward(
        self,
        invocation: ToolInvocation,
        params: BaseModel,
        credentials: Credentials,
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        security_context = {
            **(context or {}),
            "projectRef": invocation.project_ref,
            "credentialSource": credentials.source.value,
        }
        logger.info(f"Mock execution of '{invocation.name}' for {invocation.project_ref}")
        return (
            f"Tool '{invocation.name}' executed successfully with parameters: "
            f"{json.dumps(dict(invocation.arguments), default=str)}\n\n"
            f"Security Context: {json.dumps(security_context, indent=2, default=str)}"
        )
