# Posts module constants

# Error messages
POST_NOT_FOUND = "Post not found"
NOT_POST_OWNER = "You can only modify your own posts"
MEDIA_REQUIRED = "Media file is required for video posts"
IMAGES_REQUIRED = "At least one image is required for photo posts"
TOO_MANY_IMAGES = "A photo post accepts at most {max} images"
INVALID_VIDEO_FORMAT = "Invalid video format. Allowed: mp4, mov, avi"
INVALID_IMAGE_FORMAT = "Invalid image format. Allowed: jpg, jpeg, png"
INVALID_POST_TYPE = "type must be 'photo' or 'video'"
TITLE_REQUIRED = "title is required"
UPLOAD_FAILED = "Failed to upload media"
CREATE_FAILED = "Failed to create post"

# Success messages
POST_DELETED_SUCCESSFULLY = "Post deleted successfully"

# Upload rules
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
DEFAULT_VIDEO_CONTENT_TYPE = "video/mp4"
DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"
MAX_IMAGES_PER_POST = 10
POSTS_KEY_PREFIX = "posts"

# Paging
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_TITLE_LENGTH = 255
