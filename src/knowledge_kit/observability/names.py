# src/knowledge_kit/observability/names.py

"""Standard metric names for knowledge-kit observability.

Use these constants instead of hardcoded strings so every component
reports under the same names.

Note: All duration metrics are in milliseconds by convention.
"""

# ============================================================================
# Chunking Metrics
# ============================================================================

# Duration
CHUNKING_DURATION = "chunking_duration"

# Counters (chunks accumulate over time)
CHUNKING_CHUNKS_CREATED = "chunking_chunks_created"
CHUNKING_CHUNKS_MERGED = "chunking_chunks_merged"


# ============================================================================
# Search Index Metrics
# ============================================================================

# Duration
SEARCH_DURATION = "search_duration"

# Counters
INDEX_CHUNKS_ADDED = "index_chunks_added"
INDEX_CHUNKS_REMOVED = "index_chunks_removed"
SEARCH_QUERIES_TOTAL = "search_queries_total"

# Gauges
SEARCH_RESULTS_COUNT = "search_results_count"
INDEX_CHUNK_COUNT = "index_chunk_count"


# ============================================================================
# Source Metrics
# ============================================================================

# Duration
SOURCE_CONNECT_DURATION = "source_connect_duration"
SOURCE_FETCH_DURATION = "source_fetch_duration"

# Counters
SOURCE_DOCUMENTS_FETCHED = "source_documents_fetched"
SOURCE_ERRORS_TOTAL = "source_errors_total"


# ============================================================================
# Provider Metrics
# ============================================================================

# Duration
PROVIDER_SYNC_DURATION = "provider_sync_duration"
PROVIDER_QUERY_DURATION = "provider_query_duration"

# Counters
PROVIDER_DOCUMENTS_INDEXED = "provider_documents_indexed"


# ============================================================================
# Tool Metrics
# ============================================================================

# Duration
TOOL_CALL_DURATION = "tool_call_duration"

# Counters
TOOL_CALLS_TOTAL = "tool_calls_total"
TOOL_ERRORS_TOTAL = "tool_errors_total"
