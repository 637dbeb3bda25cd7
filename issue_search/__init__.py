"""
Issue Search - multi-strategy search over synchronized GitHub issues.
"""
