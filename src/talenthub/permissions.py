"""Team roles, their permissions and team-size limits."""

from typing import Optional

from pydantic import BaseModel

from talenthub.models.records import TeamPermissions, TeamRole
from talenthub.subscription import SubscriptionTier


def permissions_for_role(role: str) -> TeamPermissions:
    """Permissions granted to a member invited with ``role``.

    These are stored on the member at invite time and not re-derived later.
    """
    role = TeamRole(role)
    if role == TeamRole.OWNER:
        return TeamPermissions(**{name: True for name in TeamPermissions.model_fields})
    is_admin = role == TeamRole.ADMIN
    return TeamPermissions(
        can_view_candidates=True,
        can_edit_candidates=is_admin,
        can_view_jobs=True,
        can_edit_jobs=is_admin,
        can_schedule_interviews=True,
        can_view_reports=is_admin,
        can_manage_team=False,
    )


class TeamCapacity(BaseModel):
    can_add_member: bool
    current_count: int
    max_team_members: Optional[int]
    available_slots: Optional[int]


def team_capacity(active_members: int, tier: SubscriptionTier) -> TeamCapacity:
    """Seats left on the plan; the account owner occupies one."""
    current = active_members + 1
    maximum = tier.limits.max_team_members
    if maximum is None:
        return TeamCapacity(
            can_add_member=True, current_count=current, max_team_members=None, available_slots=None
        )
    return TeamCapacity(
        can_add_member=current < maximum,
        current_count=current,
        max_team_members=maximum,
        available_slots=max(0, maximum - current),
    )
