from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ...domain.entities import DecodedToken
from ...domain.exceptions import AuthorizationError
from ...domain.value_objects import ScopeRequirement


@dataclass(slots=True)
class AuthorizeScopesUseCase:
    """
    Application use case for authorization using declarative ScopeRequirement
    objects.

    Takes:
      - a DecodedToken (already authenticated)
      - an iterable of ScopeRequirement objects

    and raises AuthorizationError if any requirement is not satisfied.
    """

    def _check_requirement(self, token: DecodedToken, requirement: ScopeRequirement) -> None:
        if requirement.is_satisfied_by(token.scope):
            return

        if requirement.any_of and not any(s in token.scope for s in requirement.any_of):
            detail = f"Missing at least one required scope from: {list(requirement.any_of)}"
        else:
            missing = [s for s in requirement.all_of if s not in token.scope]
            detail = f"Missing required scope(s): {missing}"

        raise AuthorizationError(
            f"Insufficient permissions. {detail}",
            required_scopes=requirement.scopes,
            granted_scopes=token.scope,
        )

    def execute(
            self,
            token: DecodedToken,
            requirements: Iterable[ScopeRequirement],
    ) -> DecodedToken:
        """
        Raises:
            AuthorizationError if any of the requirements are not satisfied.

        Returns:
            The same DecodedToken if authorization succeeds (for chaining).
        """
        for requirement in requirements:
            self._check_requirement(token, requirement)

        return token
