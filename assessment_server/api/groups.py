"""
Group management endpoints
"""
from fastapi import APIRouter, Depends

from assessment_server.core.groups import GroupRegistry
from assessment_server.state import get_groups


router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.get("")
async def list_groups(groups: GroupRegistry = Depends(get_groups)):
    """Registered groups plus any group referenced by a team or assessment"""
    return groups.list_all()


@router.post("")
async def create_group(payload: dict, groups: GroupRegistry = Depends(get_groups)):
    """
    Create a group

    Request:
        {"name": "cohort-a"}
    """
    group_name = groups.create(payload.get("name"))
    return {
        "success": True,
        "groupName": group_name,
        "message": f"Group '{group_name}' created successfully"
    }


@router.delete("/{group_name}")
async def delete_group(group_name: str, groups: GroupRegistry = Depends(get_groups)):
    """Delete a group that has no teams and no assessments"""
    groups.delete(group_name)
    return {
        "success": True,
        "message": f"Group '{group_name.strip()}' deleted successfully"
    }


@router.put("/{group_name}/email")
async def update_group_email(group_name: str, payload: dict,
                             groups: GroupRegistry = Depends(get_groups)):
    """
    Set the notification address for a group; an empty email clears it

    Request:
        {"email": "instructor@example.com"}
    """
    email = groups.set_email(group_name, payload.get("email"))
    return {
        "success": True,
        "message": f"Email updated for group '{group_name.strip()}'",
        "email": email
    }


@router.get("/{group_name}/email")
async def get_group_email(group_name: str, groups: GroupRegistry = Depends(get_groups)):
    return {
        "groupName": group_name.strip(),
        "email": groups.get_email(group_name)
    }
