"""
Tools Module - MCP Tool Implementations
"""

from issue_search.tools import search_issues

__all__ = [
    "search_issues",
]
