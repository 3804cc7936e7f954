# Auth module constants

# Error messages
INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_INACTIVE = "Account is inactive"
EMAIL_TAKEN = "Email already registered"
USERNAME_TAKEN = "Username already taken"
TOKEN_MISSING = "Authorization header required"
TOKEN_MALFORMED = "Invalid authorization header format"
TOKEN_INVALID = "Invalid or expired token"
INSUFFICIENT_ROLE = "Insufficient permissions"

# Validation
MIN_USERNAME_LENGTH = 1
MAX_USERNAME_LENGTH = 50
MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# Token claim names
CLAIM_USER_ID = "user_id"
CLAIM_ROLE = "role"
