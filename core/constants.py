"""
Core — Constants

Shared constants: audit actions, pagination, bulk limits, cache keys.

@file core/constants.py
"""

# ---------------------------------------------------------------------------
# Audit actions (mirrors AuditLog.ActionChoices)
# ---------------------------------------------------------------------------

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DEACTIVATE = 'DEACTIVATE'
AUDIT_ACTION_ADJUST = 'ADJUST'

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200

# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------

DEFAULT_BULK_MAX_ITEMS = 200

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

CACHE_KEY_ACTIVE_STATUS_DEFINITIONS = 'statuses:definitions:active'
DEFAULT_STATUS_DEFINITIONS_CACHE_SECONDS = 300

# ---------------------------------------------------------------------------
# Location code format: L01-P02-Z03 (lot, cart/position, level)
# ---------------------------------------------------------------------------

LOCATION_CODE_TEMPLATE = 'L{lot:0>2}-P{cart:0>2}-Z{level:0>2}'
