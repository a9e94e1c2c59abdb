"""Admin account-management endpoints.

Endpoints:
- POST /api/v1/admin/reset-password - Unlock an account, optionally
  setting a new password
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from hardstore.app.api.v1.dependencies import AdminUser, Auth
from hardstore.core.errors import UserNotFoundError

router = APIRouter(prefix="/admin", tags=["admin"])


class ResetPasswordRequest(BaseModel):
    """Request schema for unlock / password reset.

    A blank or missing new_password only unlocks the account.
    """

    username: str = Field(..., min_length=1)
    new_password: str | None = None


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest, auth: Auth, _admin: AdminUser
) -> dict[str, str]:
    """Unlock an account (and reset its password if one is given)."""
    new_password = (body.new_password or "").strip()

    if new_password:
        found = await auth.reset_password(body.username, new_password)
        action = "unlocked and password reset"
    else:
        found = await auth.unlock(body.username)
        action = "unlocked"

    if not found:
        raise UserNotFoundError()

    return {"message": f"Account for '{body.username}' has been {action}."}
