"""MCP tools driving the process-wide map session."""
