"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are API stability limits and implementation details.

For configurable values, see models.py (IndexConfig, LimitsConfig, etc.).
"""

# =============================================================================
# Search / Query Maximums
# =============================================================================
# Hard caps for API stability. Users can configure defaults below these,
# but cannot exceed them.

SEARCH_MAX_LIMIT = 100
"""Maximum results for a single search, whatever the caller requests."""

QUERY_MAX_KEYWORDS = 10
"""Maximum keywords kept from a natural-language query."""

QUERY_RESULTS_PER_KEYWORD = 10
"""Search limit used for each keyword of a natural-language query."""

FILE_CONTENT_LIMIT = 10_000
"""Default character cap for file content responses."""

# =============================================================================
# Indexing
# =============================================================================

PROGRESS_FLUSH_INTERVAL = 50
"""Files between flushes of the files-processed counter."""

DEFAULT_BRANCH = "main"

DEFAULT_REPOS_DIRECTORY = "/tmp/mcp-repos"
"""Where the transport layer keeps clones for github/gitlab remotes."""
