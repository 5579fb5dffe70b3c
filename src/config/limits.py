"""
Centralized Limits

Placeholder syntax and size limits in one place.
Import these in services, API routes and Pydantic models.
"""

# =============================================================================
# PLACEHOLDER SYNTAX
# =============================================================================

# Legacy single-delimited placeholders ($id$) need at least this many
# identifier characters so dollar amounts like "$5 and $10" never match
LEGACY_PLACEHOLDER_MIN_LENGTH = 15

# =============================================================================
# STORE LIMITS
# =============================================================================

# Firestore "in" filter fan-out
FIRESTORE_IN_QUERY_LIMIT = 30

# =============================================================================
# REQUEST LIMITS
# =============================================================================

# Texts accepted by one /placeholders/resolve call
RESOLVE_BATCH_MAX_TEXTS = 500

# Length of a single text in a resolve request
RESOLVE_TEXT_MAX_LENGTH = 100000
