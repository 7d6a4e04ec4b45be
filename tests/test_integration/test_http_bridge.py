"""Integration tests for the HTTP bridge — SSE /mcp, legacy /tools routes, native mount."""
import json
import pytest
from fastapi.testclient import TestClient
from gateway.credentials import PROJECT_HEADER, TOKEN_HEADER
from gateway.http import create_app
from gateway.mcp_server import build_mcp_server


def _events(response) -> list[dict]:
    return [
        json.loads(chunk[len("data: "):])
        for chunk in response.text.split("\n\n")
        if chunk.startswith("data: ")
    ]


@pytest.fixture
def client_factory(service_factory):
    def factory(forwarder=None, **policy):
        service = service_factory(forwarder=forwarder, **policy)
        return TestClient(create_app(service, build_mcp_server(service)))

    return factory


@pytest.fixture
def client(client_factory):
    return client_factory()


# ── Health & security ─────────────────────────────────────────────────

class TestInfoEndpoints:

    def test_health(self, client_factory):
        response = client_factory(read_only=True, allowed_projects=["a", "b"]).get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == "1.0.0"
        assert "timestamp" in body
        assert body["security"]["readOnly"] is True
        assert body["security"]["allowedProjects"] == 2
        assert body["security"]["allowedSchemas"] == "all"

    def test_security(self, client_factory):
        body = client_factory(allowed_schemas=["public"]).get("/security").json()
        assert body["allowedSchemas"] == ["public"]
        assert body["readOnly"] is False


# ── /mcp SSE ──────────────────────────────────────────────────────────

class TestMcpStream:

    def test_tools_list(self, client):
        response = client.post("/mcp", json={"id": "1", "method": "tools/list"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response)
        assert [e["type"] for e in events] == ["data", "data", "complete"]
        assert events[0]["data"]["message"] == "Starting MCP operation: tools/list"
        assert events[0]["data"]["projectRef"] == "default-project"
        result = events[1]["data"]
        assert result["jsonrpc"] == "2.0"
        assert result["id"] == "1"
        assert len(result["result"]["tools"]) == 6
        assert events[2]["data"]["message"] == "MCP operation completed"
        assert all(e["id"] == "1" for e in events)

    def test_generated_request_id(self, client):
        events = _events(client.post("/mcp", json={"method": "tools/list"}))
        assert events[0]["id"].startswith("req_")

    def test_tools_call(self, client):
        events = _events(client.post(
            "/mcp",
            json={
                "method": "tools/call",
                "params": {"name": "execute_sql", "arguments": {"query": "SELECT 1"}},
            },
            headers={PROJECT_HEADER: "proj1"},
        ))
        assert [e["type"] for e in events] == ["data", "data", "complete"]
        content = events[1]["data"]["result"]["content"][0]["text"]
        assert content.startswith("Tool 'execute_sql' executed successfully")

    def test_tools_call_sql_rejected(self, client):
        events = _events(client.post(
            "/mcp",
            json={
                "method": "tools/call",
                "params": {"name": "execute_sql", "arguments": {"query": "DROP TABLE users"}},
            },
        ))
        assert [e["type"] for e in events] == ["data", "error"]
        assert events[1]["error"] == "Dangerous SQL operation blocked: DROP TABLE"
        assert "data" not in events[1]

    def test_tools_call_read_only(self, client_factory):
        events = _events(client_factory(read_only=True).post(
            "/mcp",
            json={
                "method": "tools/call",
                "params": {"name": "apply_migration", "arguments": {"name": "m", "query": "x"}},
            },
        ))
        assert events[-1]["error"] == (
            "Operation 'apply_migration' is not allowed in read-only mode"
        )

    def test_project_denied_before_start(self, client_factory):
        events = _events(client_factory(allowed_projects=["proj1"]).post(
            "/mcp",
            json={"method": "tools/list"},
            headers={PROJECT_HEADER: "proj2"},
        ))
        assert len(events) == 1
        assert events[0]["type"] == "error"
        assert events[0]["error"] == (
            "Access denied: Project proj2 is not in the allowed projects list"
        )

    def test_missing_token(self, client_factory, mock_forwarder):
        events = _events(client_factory(forwarder=mock_forwarder).post(
            "/mcp", json={"method": "tools/list"}
        ))
        assert events == [
            {"id": events[0]["id"], "type": "error", "error": "Supabase access token required"}
        ]

    def test_token_header(self, client_factory, mock_forwarder):
        events = _events(client_factory(forwarder=mock_forwarder).post(
            "/mcp",
            json={"method": "tools/list"},
            headers={TOKEN_HEADER: "sbp_x", PROJECT_HEADER: "proj1"},
        ))
        assert events[-1]["type"] == "complete"

    def test_missing_method(self, client):
        events = _events(client.post("/mcp", json={}))
        assert events[0]["error"] == "MCP method is required"

    def test_missing_tool_name(self, client):
        events = _events(client.post("/mcp", json={"method": "tools/call", "params": {}}))
        assert events[-1]["error"] == "Tool name is required for tools/call"

    def test_unsupported_method(self, client):
        events = _events(client.post("/mcp", json={"method": "sampling/createMessage"}))
        assert events[-1]["error"] == "Unsupported MCP method: sampling/createMessage"

    def test_params_must_be_object(self, client):
        events = _events(client.post("/mcp", json={"method": "tools/call", "params": ["x"]}))
        assert events == [
            {"id": events[0]["id"], "type": "error", "error": "MCP params must be an object"}
        ]

    def test_tool_arguments_must_be_object(self, client):
        events = _events(client.post(
            "/mcp",
            json={
                "method": "tools/call",
                "params": {"name": "execute_sql", "arguments": "SELECT 1"},
            },
        ))
        assert [e["type"] for e in events] == ["data", "error"]
        assert events[1]["error"] == "Tool arguments must be an object"

    def test_invalid_json_body(self, client):
        response = client.post(
            "/mcp", content=b"not json", headers={"content-type": "application/json"}
        )
        assert _events(response)[0]["error"] == "MCP method is required"


class TestPromptsAndResources:

    def test_prompts_list(self, client):
        events = _events(client.post("/mcp", json={"method": "prompts/list"}))
        prompts = events[1]["data"]["result"]["prompts"]
        assert [p["name"] for p in prompts] == ["database_schema_analysis"]

    def test_prompts_get(self, client):
        events = _events(client.post(
            "/mcp",
            json={"method": "prompts/get", "params": {"name": "database_schema_analysis"}},
        ))
        messages = events[1]["data"]["result"]["messages"]
        assert "list_tables" in messages[0]["content"]["text"]

    def test_prompt_name_required(self, client):
        events = _events(client.post("/mcp", json={"method": "prompts/get"}))
        assert events[-1]["error"] == "Prompt name is required for prompts/get"

    def test_resources_list(self, client):
        events = _events(client.post("/mcp", json={"method": "resources/list"}))
        resources = events[1]["data"]["result"]["resources"]
        assert resources[0]["name"] == "Supabase Project"
        assert resources[0]["uri"].startswith("supabase://project")

    def test_resources_read(self, client_factory):
        events = _events(client_factory(read_only=True).post(
            "/mcp",
            json={"method": "resources/read", "params": {"uri": "supabase://project"}},
        ))
        contents = events[1]["data"]["result"]["contents"]
        project = json.loads(contents[0]["text"])
        assert project["projectRef"] == "default-project"
        assert project["security"]["readOnly"] is True

    def test_resource_uri_required(self, client):
        events = _events(client.post("/mcp", json={"method": "resources/read"}))
        assert events[-1]["error"] == "Resource URI is required for resources/read"


# ── Legacy /tools routes ──────────────────────────────────────────────

class TestLegacyTools:

    def test_list(self, client_factory):
        body = client_factory(read_only=True).get("/tools").json()
        assert body["id"] == "tools_list"
        names = [t["name"] for t in body["result"]["tools"]]
        assert "apply_migration" not in names

    def test_list_requires_token(self, client_factory, mock_forwarder):
        response = client_factory(forwarder=mock_forwarder).get("/tools")
        assert response.status_code == 401
        assert response.json()["error"] == "Supabase access token required"

    def test_execute_stream(self, client):
        events = _events(client.post(
            "/tools/execute",
            json={"toolName": "list_tables", "arguments": {"schemas": ["public"]}},
        ))
        assert [e["type"] for e in events] == ["data", "data", "complete"]
        assert events[0]["data"]["message"] == "Starting execution of tool: list_tables"
        assert events[2]["data"]["message"] == "Tool execution completed"

    def test_execute_stream_requires_tool_name(self, client):
        events = _events(client.post("/tools/execute", json={"arguments": {}}))
        assert events == [
            {"id": events[0]["id"], "type": "error", "error": "Tool name is required"}
        ]

    def test_execute_stream_arguments_must_be_object(self, client):
        response = client.post(
            "/tools/execute", json={"toolName": "execute_sql", "arguments": "SELECT 1"}
        )
        assert response.status_code == 200
        events = _events(response)
        assert events == [
            {"id": events[0]["id"], "type": "error", "error": "Tool arguments must be an object"}
        ]

    def test_direct_call(self, client):
        response = client.post("/tools/get_project_url", json={})
        assert response.status_code == 200
        assert response.json()["isError"] is False

    def test_direct_call_denied(self, client_factory):
        response = client_factory(blocked_operations=["get_anon_key"]).post(
            "/tools/get_anon_key", json={}
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Operation 'get_anon_key' is explicitly blocked"

    def test_direct_call_unknown_tool(self, client):
        assert client.post("/tools/nope", json={}).status_code == 404

    def test_direct_call_requires_token(self, client_factory, mock_forwarder):
        response = client_factory(forwarder=mock_forwarder).post("/tools/list_tables", json={})
        assert response.status_code == 401
        mock_forwarder.forward.assert_not_awaited()

    def test_direct_call_forwarder_failure(self, client_factory, mock_forwarder):
        mock_forwarder.forward.side_effect = RuntimeError("boom")
        response = client_factory(forwarder=mock_forwarder).post(
            "/tools/list_tables",
            json={},
            headers={TOKEN_HEADER: "sbp_x", PROJECT_HEADER: "proj1"},
        )
        assert response.status_code == 500
        assert "RuntimeError" in response.json()["error"]


# ── Native MCP mount ──────────────────────────────────────────────────

class TestNativeMount:

    def test_tools_list_over_streamable_http(self, service_factory):
        service = service_factory()
        app = create_app(service, build_mcp_server(service))
        with TestClient(app) as client:
            response = client.post(
                "/native/mcp",
                json={"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
                headers={"Accept": "application/json, text/event-stream"},
            )
        assert response.status_code == 200
        payloads = [
            json.loads(line[len("data: "):])
            for line in response.text.splitlines()
            if line.startswith("data: ")
        ]
        names = {t["name"] for t in payloads[0]["result"]["tools"]}
        assert {"execute_sql", "list_tables", "apply_migration"} <= names
