from enum import Enum


class Provider(Enum):
    TWITCH = "TWITCH"
    KICK = "KICK"


# Only algorithm accepted for access tokens; never taken from the token header.
JWT_ALGORITHM = "RS256"

REQUIRED_CLAIMS = ("sub", "username", "profilePicture", "iss", "exp", "iat", "aud", "scope")

PUBLIC_KEY_MAX_ATTEMPTS = 3
PUBLIC_KEY_RETRY_BASE_DELAY = 1.0
