"""Request gatekeeping for the Supabase MCP gateway.

Provides layered checks run before any call reaches Supabase:
- Operation access control (project, read-only, blocked operations, schemas, tables)
- SQL statement guarding (pattern heuristic by default, sqlglot parser opt-in)
"""
