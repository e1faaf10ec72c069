from loguru import logger
from core.exceptions import OdooAPIError, ValidationError
from core.permissions import group_name, summarize_permissions, total_permissions
from integrations.odoo_client import OdooClient
from models.odoo import Faculty
from models.permissions import FacultyReview, GroupReview


class PermissionReviewService:
    def __init__(self, client: OdooClient):
        self.client = client

    def review_groups(self, group_ids: list[int]) -> list[GroupReview]:
        """Fetch and summarize the access rules of each group.

        An Odoo error on one group is kept on that group's review. Session
        and configuration errors propagate since every other group would
        fail the same way.
        """
        names = self.client.group_names(group_ids)
        reviews = []
        for gid in group_ids:
            name = group_name(gid, names)
            try:
                rows = self.client.get_group_permissions(gid)
            except OdooAPIError as e:
                logger.warning(f"Permissions for group {gid} unavailable: {e.message}")
                reviews.append(GroupReview(group_id=gid, group_name=name, error=e.message))
                continue
            reviews.append(GroupReview(
                group_id=gid,
                group_name=name,
                permissions=rows,
                summary=summarize_permissions(rows),
            ))
        return reviews

    def review_faculty(self, faculty) -> FacultyReview:
        if not isinstance(faculty, Faculty):
            found = self.client.get_faculty(int(faculty))
            if found is None:
                raise ValidationError(f"Faculty {faculty} not found", status_code=404)
            faculty = found
        groups = self.review_groups(faculty.res_group_id)
        logger.info(f"Reviewed {len(groups)} group(s) for {faculty.name}")
        return FacultyReview(faculty=faculty, groups=groups, total=total_permissions(groups))
