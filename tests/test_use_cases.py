import pytest

from enhancer_auth import (
    AuthenticateTokenUseCase,
    AuthenticationError,
    AuthorizationError,
    AuthorizeScopesUseCase,
    DecodedToken,
    InvalidTokenError,
    NetworkError,
    TokenExpiredError,
    require_scopes,
)

USER = DecodedToken(
    sub="3f1c2b7a-9d4e-4c1a-8b2f-6e5d4c3b2a10",
    username="alice",
    profile_picture="https://cdn.enhancer.at/a.png",
    iss="https://auth.enhancer.at",
    exp=1_700_000_900,
    iat=1_700_000_000,
    aud="my-service",
    scope=("READ", "WRITE"),
)


class RaisingVerifier:
    def __init__(self, exc: Exception):
        self.exc = exc

    async def verify(self, token: str) -> DecodedToken:
        raise self.exc


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc", [TokenExpiredError(), InvalidTokenError("bad"), NetworkError("down")]
)
async def test_authenticate_passes_classified_errors_through(exc):
    with pytest.raises(type(exc)) as exc_info:
        await AuthenticateTokenUseCase(RaisingVerifier(exc)).execute("a.b.c")

    assert exc_info.value is exc


@pytest.mark.asyncio
async def test_authenticate_wraps_unexpected_errors():
    use_case = AuthenticateTokenUseCase(RaisingVerifier(RuntimeError("boom")))

    with pytest.raises(AuthenticationError, match="Token validation failed: boom") as exc_info:
        await use_case.execute("a.b.c")

    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_authorize_any_of_message():
    with pytest.raises(AuthorizationError, match="Missing at least one required scope"):
        AuthorizeScopesUseCase().execute(USER, [require_scopes("ADMIN", "OWNER", any_of=True)])


def test_authorize_all_of_message_lists_missing_scopes():
    with pytest.raises(AuthorizationError, match=r"Missing required scope\(s\): \['ADMIN'\]"):
        AuthorizeScopesUseCase().execute(USER, [require_scopes("READ", "ADMIN")])


def test_authorize_checks_every_requirement():
    use_case = AuthorizeScopesUseCase()

    assert use_case.execute(USER, []) is USER
    assert use_case.execute(USER, [require_scopes("READ"), require_scopes("WRITE")]) is USER
    with pytest.raises(AuthorizationError):
        use_case.execute(USER, [require_scopes("READ"), require_scopes("ADMIN")])
