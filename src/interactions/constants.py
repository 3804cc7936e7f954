# Interaction messages
POST_LIKED = "Post liked"
POST_UNLIKED = "Post unliked"
VIEW_COUNTED = "View counted"
VIEW_ALREADY_COUNTED = "View already counted"

LIKE_FAILED = "Failed to like post"
VIEW_TRACK_FAILED = "Failed to track view"
VIEW_INCREMENT_FAILED = "Failed to increment views"

DEFAULT_LIKED_LIMIT = 20
MAX_LIKED_LIMIT = 100
