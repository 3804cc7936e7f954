import enum


class TaskType(str, enum.Enum):
    NEW_POST = "new_post"
    LIKE = "like"
    SUBSCRIPTION = "subscription"


# Queue priorities per task type (0..10, higher first)
NEW_POST_PRIORITY = 5
SUBSCRIPTION_PRIORITY = 4
LIKE_PRIORITY = 3

# Notification texts
NEW_POST_TITLE = "New Post Alert!"
NEW_POST_MESSAGE = "Creator {username} just posted new content!"
LIKE_TITLE = "New Like!"
LIKE_MESSAGE = "{username} liked your post"
SUBSCRIPTION_TITLE = "New Subscriber!"
SUBSCRIPTION_MESSAGE = "{username} subscribed to you"
UNKNOWN_ACTOR = "Someone"

# Inbox paging
DEFAULT_NOTIFICATIONS_LIMIT = 50
MAX_NOTIFICATIONS_LIMIT = 100

# Settings flag values
SETTING_ENABLED = "true"
SETTING_DISABLED = "false"
