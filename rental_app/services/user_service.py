from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from pydantic import ValidationError

from rental_app.exceptions import BackendError, ProfileNotFoundError
from rental_app.models.user import ProfilePatch, UserProfile
from rental_app.services.common import _store, blank_to_none, profile_from_row
from rental_app.services.vehicle_service import validation_message

if TYPE_CHECKING:
    from rental_app.models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)


class UserService:
    """Profile read/edit and account deletion."""

    @staticmethod
    def get_profile(user_id: str, *, store: Optional["Store"] = None) -> UserProfile:
        st = store or _store()
        profile = profile_from_row(st.get_profile(user_id))
        if profile is None:
            raise ProfileNotFoundError()
        return profile

    @staticmethod
    def update_profile(user_id: str, patch: dict, *, store: Optional["Store"] = None):
        st = store or _store()
        if not st.get_profile(user_id):
            return False, "No profile to update"
        try:
            data = ProfilePatch.model_validate(blank_to_none(patch))
        except ValidationError as e:
            return False, validation_message(e)
        try:
            st.update_profile(user_id, data.model_dump(exclude_unset=True))
        except BackendError as e:
            logger.warning("update_profile %s failed: %s", user_id, e)
            return False, e.message
        return True, "Profile updated"

    @staticmethod
    def delete_account(user_id: str, *, store: Optional["Store"] = None):
        """
        Remove the account and everything it owns: listed vehicles (with their
        bookings and payments), the user's own bookings and payments, the
        profile and the credentials. Nothing is removed unless all of it is.
        """
        st = store or _store()
        if not st.get_user(user_id):
            return False, "No account to delete"

        try:
            st.delete_user_cascade(user_id)
        except BackendError as e:
            logger.error("delete_account %s aborted: %s", user_id, e)
            return False, e.message
        logger.info("Account %s deleted", user_id)
        return True, "Account deleted"
