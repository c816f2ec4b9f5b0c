# =============================================================================
# Profile Resolver
# =============================================================================
# Turns sender ids into display profiles.
#
# Lookups are batched: a view load resolves every distinct sender in a single
# store round trip, never one per message. Results are cached in the active
# view's MailboxState.profiles, so re-resolving during the same view load is
# free and switching views starts from an empty cache.
#
# An id without a profile is simply absent from the result. Callers decide
# what to show instead (the message store uses "Unknown User").
# =============================================================================

import logging
from typing import Iterable

from hexmail.auth import Session, require_user
from hexmail.core import UserProfile
from hexmail.storage.repository import Repository


logger = logging.getLogger(__name__)


class ProfileResolver:
    """
    Batched, cached profile lookup.

    Usage:
        >>> resolver = ProfileResolver(repo, session)
        >>> profiles = await resolver.resolve_many({"u1", "u2"}, cache=state.profiles)
        >>> profiles.get("u1")

    Attributes:
        repo: Remote store.
        session: Authentication collaborator (for update_display_name).
    """

    def __init__(self, repo: Repository, session: Session) -> None:
        self.repo = repo
        self.session = session

    async def resolve_many(
        self,
        profile_ids: Iterable[str],
        cache: dict[str, UserProfile] | None = None,
    ) -> dict[str, UserProfile]:
        """
        Resolve a set of ids to profiles in one round trip.

        Args:
            profile_ids: Ids to resolve. Duplicates are collapsed.
            cache: Per-view cache to read from and fill. Ids already cached
                   are not fetched again.

        Returns:
            Mapping of id to profile for every id that has one.

        Raises:
            RemoteFailure: If the store lookup fails.
        """
        wanted = set(profile_ids)
        cache = cache if cache is not None else {}

        missing = wanted - cache.keys()
        if missing:
            logger.debug(f"Resolving {len(missing)} profiles ({len(wanted) - len(missing)} cached)")
            for profile in await self.repo.select_profiles(sorted(missing)):
                cache[profile.id] = profile

        return {pid: cache[pid] for pid in wanted if pid in cache}

    async def resolve(
        self,
        profile_id: str,
        cache: dict[str, UserProfile] | None = None,
    ) -> UserProfile | None:
        """Resolve a single id. Returns None if there is no such profile."""
        profiles = await self.resolve_many({profile_id}, cache)
        return profiles.get(profile_id)

    async def update_display_name(
        self,
        display_name: str,
        cache: dict[str, UserProfile] | None = None,
    ) -> UserProfile:
        """
        Change the signed-in user's display name.

        Raises:
            ValueError: If the new name is blank.
            Unauthenticated: If nobody is signed in.
            NotFound: If the user has no profile.
        """
        name = display_name.strip()
        if not name:
            raise ValueError("Display name cannot be empty")

        user = require_user(self.session)
        profile = await self.repo.update_profile(user.id, name)

        if cache is not None:
            cache[profile.id] = profile

        logger.info(f"Updated display name for {user.email}")
        return profile
