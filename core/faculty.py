from datetime import date
from typing import Optional

from models.odoo import Faculty


def format_date(value: Optional[str]) -> str:
    if not value:
        return "Not provided"
    try:
        return date.fromisoformat(value[:10]).strftime("%B %d, %Y")
    except ValueError:
        return value


def format_faculty_text(faculty: Faculty, group_names: dict) -> str:
    """Plain-text card for one faculty member, used by the text export."""
    groups = ", ".join(
        f"{gid}: {group_names.get(gid) or f'Group {gid}'}"
        for gid in faculty.res_group_id
    ) or "None"
    return (
        f"Faculty: {faculty.name}\n"
        f"ID: {faculty.id}\n"
        f"Login: {faculty.login or 'Not provided'}\n"
        f"Joining Date: {format_date(faculty.joining_date)}\n"
        f"Contact: {faculty.contact_number1 or 'Not provided'}\n"
        f"Campus: {faculty.campus_name or 'Not assigned'}\n"
        f"Department: {faculty.department_name or 'Not assigned'}\n"
        f"Resource Groups: {groups}"
    )
