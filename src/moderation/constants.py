DEFAULT_PENDING_LIMIT = 50
MAX_PENDING_LIMIT = 100

REVIEWED_MESSAGE = "Post reviewed successfully"
APPROVED_MESSAGE = "Post approved successfully"
REJECTED_MESSAGE = "Post rejected successfully"
UPDATE_FAILED = "Failed to update post status"
