"""
Application constants for the issue tracker.

Contains issue listing defaults, sortable fields and export layout.
"""

# =============================================================================
# Listing
# =============================================================================

# Minimum comment count for the "commented issues only" filter
NUMBER_OF_ONE_MORE_COMMENTS = 1

DEFAULT_ORDER_BY = "id"
DEFAULT_ORDER_DIR = "desc"

# Sort keys accepted from the request, mapped to Issue attribute names
SORTABLE_FIELDS = {
    "id": "id",
    "created_at": "created_at",
    "createdDate": "created_at",
    "title": "title",
    "num_of_comments": "num_of_comments",
    "numOfComments": "num_of_comments",
    "updated_at": "updated_at",
}

# =============================================================================
# Export
# =============================================================================

EXPORT_SHEET_TITLE = "Issues"
EXPORT_FILE_SUFFIX = "_issues"
EXPORT_FILE_EXTENSION = ".xlsx"
EXPORT_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_COLUMNS = [
    ("ID", 8),
    ("State", 10),
    ("Title", 48),
    ("Author", 16),
    ("Assignee", 16),
    ("Milestone", 20),
    ("Labels", 30),
    ("Comments", 10),
    ("Created", 20),
]

# =============================================================================
# Attachments
# =============================================================================

CONTAINER_USER = "user"
CONTAINER_ISSUE_POST = "issue_post"
CONTAINER_ISSUE_COMMENT = "issue_comment"
