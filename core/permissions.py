from models.odoo import GroupPermission
from models.permissions import GroupPermissionInput, GroupReview, PermissionCount

PERMISSION_LABELS = {
    "create": "Create",
    "read": "Read (View)",
    "update": "Update (Write)",
    "delete": "Delete (Unlink)",
}


def group_name(group_id: int, names: dict) -> str:
    return names.get(group_id) or f"Group ID: {group_id}"


def summarize_permissions(rows: list[GroupPermission]) -> PermissionCount:
    """Count the models each CRUD right is granted on."""
    return PermissionCount(
        create=sum(1 for r in rows if r.perm_create),
        read=sum(1 for r in rows if r.perm_read),
        update=sum(1 for r in rows if r.perm_write),
        delete=sum(1 for r in rows if r.perm_unlink),
    )


def total_permissions(reviews: list[GroupReview]) -> PermissionCount:
    total = PermissionCount()
    for review in reviews:
        if review.error:
            continue
        total = total + review.summary
    return total


def format_permission_text(name: str, summary: PermissionCount) -> str:
    return (
        f"{name}:\n"
        f"  Create: {str(summary.create):<6} | "
        f"Read: {str(summary.read):<6} | "
        f"Update: {str(summary.update):<6} | "
        f"Delete: {summary.delete}"
    )


def to_analysis_input(reviews: list[GroupReview]) -> list[GroupPermissionInput]:
    return [
        GroupPermissionInput(
            group_id=r.group_id,
            group_name=r.group_name,
            permission_counts=r.summary,
        )
        for r in reviews if not r.error
    ]
