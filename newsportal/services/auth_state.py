"""Auth provider push events and the state they drive."""

from dataclasses import dataclass, replace
from typing import FrozenSet, Optional

from newsportal.domain import User


@dataclass(frozen=True)
class SignedIn:
    user: User


@dataclass(frozen=True)
class TokenRefreshed:
    user: User


@dataclass(frozen=True)
class SignedOut:
    pass


@dataclass(frozen=True)
class AuthState:
    user: Optional[User] = None
    favorite_ids: FrozenSet[str] = frozenset()
    show_login_modal: bool = False
    show_favorites_only: bool = False


def reduce_auth(state, event, favorite_ids=()):
    """Next auth state for ``event``.

    Every dependent field changes in the same step, so no reader ever sees a
    signed-out user with a stale favorite set or favorites mode still on.
    """
    if isinstance(event, (SignedIn, TokenRefreshed)):
        return replace(
            state,
            user=event.user,
            favorite_ids=frozenset(favorite_ids),
            show_login_modal=False,
        )
    if isinstance(event, SignedOut):
        return replace(
            state,
            user=None,
            favorite_ids=frozenset(),
            show_favorites_only=False,
        )
    raise TypeError('Unknown auth event: %r' % (event,))


def event_from_provider(name, user=None):
    """Translate a provider event name (SIGNED_IN, ...) into an event."""
    if name == 'SIGNED_OUT':
        return SignedOut()
    if user is None:
        return None
    if name == 'SIGNED_IN':
        return SignedIn(user)
    if name == 'TOKEN_REFRESHED':
        return TokenRefreshed(user)
    return None
