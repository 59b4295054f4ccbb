"""AccessService — grants and checks the paid-access permission for a user."""

import logging

from navigator_access.common.exceptions import UserNotFoundError
from navigator_access.identity.kinde_client import KindeClient
from navigator_access.identity.schemas import PermissionGrantRequest

logger = logging.getLogger(__name__)


class AccessService:
    """Maps customer emails to Kinde users and manages their access permission."""

    def __init__(self, gateway: KindeClient, org_code: str, permission_key: str):
        self.gateway = gateway
        self.org_code = org_code
        self.permission_key = permission_key

    async def grant_access(self, email: str) -> str:
        """Grant the access permission to the user owning ``email``.

        Steps:
        1. Find the Kinde user by email
        2. Grant the permission in the organization (already-assigned is fine)
        3. Refresh the user's claims so the permission is live without re-login

        Returns the Kinde user id. If the claims refresh fails the grant is
        kept; the user's next token refresh picks the permission up.
        """
        user = await self.gateway.find_user_by_email(email)
        if user is None or not user.id:
            logger.warning("User not found with email: %s", email)
            raise UserNotFoundError(email)

        logger.info("Found user %s for email %s", user.id, email)

        await self.gateway.grant_permission(
            PermissionGrantRequest(
                org_code=self.org_code,
                user_id=user.id,
                permission_key=self.permission_key,
            )
        )
        await self.gateway.refresh_user_claims(user.id)
        return user.id

    async def has_access(self, email: str) -> bool:
        """Whether the user owning ``email`` holds the access permission.

        Unknown users and users without any permissions have no access.
        """
        user = await self.gateway.find_user_by_email(email)
        if user is None or not user.id:
            return False

        permission_ids = await self.gateway.get_user_permission_ids(self.org_code, user.id)
        if not permission_ids:
            return False

        permission_id = await self.gateway.get_permission_id_by_key(self.permission_key)
        paid = permission_id in permission_ids
        logger.debug("Access check for %s: %s", email, paid)
        return paid
