"""
Strawberry GraphQL integration: context getter + scope permission classes.
"""

from .auth import (
    StrawberryAuth,
    StrawberryAuthContext,
    create_strawberry_auth,
)

__all__ = [
    "StrawberryAuth",
    "StrawberryAuthContext",
    "create_strawberry_auth",
]
