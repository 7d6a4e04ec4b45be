"""Reusable prompt templates for common Supabase workflows."""
from mcp.server.fastmcp import FastMCP


def register_prompts(mcp: FastMCP):

    @mcp.prompt("database_schema_analysis")
    async def database_schema_analysis() -> str:
        """Analyze database schema and provide insights."""
        return """You are analyzing the schema of a Supabase Postgres database. Follow these steps:

1. **List tables**: Call list_tables (optionally with schemas) to see what exists
2. **Describe key tables**: Call describe_table for each table that matters to the question
3. **Sample data**: Use execute_sql with SELECT * FROM table LIMIT 10
4. **Relationships**: Look for *_id columns and foreign keys between tables
5. **Report**: Summarize entities, relationships, missing indexes and naming issues

Only SELECT, INSERT, WITH, EXPLAIN and DESCRIBE statements are accepted by execute_sql.
Schema changes go through apply_migration, which is unavailable in read-only mode."""
