"""Records read from Odoo over JSON-RPC.

Odoo serializes an empty field as ``False`` whatever its type, so every
record model drops ``False`` values on non-boolean fields before
validation and lets the field default apply instead.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class OdooRecord(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_false(cls, data):
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            field = cls.model_fields.get(key)
            if value is False and field is not None and field.annotation is not bool:
                continue
            cleaned[key] = value
        return cleaned


def _pair_name(pair) -> Optional[str]:
    return pair[1] if pair else None


class Faculty(OdooRecord):
    id: int
    name: str = ""
    department_id: Optional[tuple[int, str]] = None
    campus_id: Optional[tuple[int, str]] = None
    joining_date: Optional[str] = None
    identification_id: Optional[str] = None
    login: Optional[str] = None
    official_email: Optional[str] = None
    contact_number1: Optional[str] = None
    res_group_id: list[int] = Field(default_factory=list)

    @field_validator("res_group_id", mode="before")
    @classmethod
    def _no_groups(cls, value):
        return [] if value is None else value

    @property
    def department_name(self) -> Optional[str]:
        return _pair_name(self.department_id)

    @property
    def campus_name(self) -> Optional[str]:
        return _pair_name(self.campus_id)


class OdooGroup(OdooRecord):
    id: int
    name: str = ""
    full_name: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or self.name or f"Group ID: {self.id}"


class GroupPermission(OdooRecord):
    """One ``ir.model.access`` row: a group's CRUD rights on one model."""
    id: int
    name: str = ""
    model_id: int = 0
    model_name: str = ""
    perm_read: bool = False
    perm_write: bool = False
    perm_create: bool = False
    perm_unlink: bool = False

    @model_validator(mode="before")
    @classmethod
    def _split_model(cls, data):
        # many2one comes back as [id, display_name]
        if isinstance(data, dict) and isinstance(data.get("model_id"), (list, tuple)):
            data = dict(data)
            model_id, model_name = data["model_id"]
            data["model_id"] = model_id
            data.setdefault("model_name", model_name)
        return data


class ModelField(OdooRecord):
    name: str
    string: str = ""
    type: str = ""
    required: bool = False
    readonly: bool = False
    relation: Optional[str] = None


class DataQueryParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str = ""
    fields: list[str] = Field(default_factory=list)
    filter_field: Optional[str] = Field(default=None, alias="filterField")
    filter_value: Any = Field(default=None, alias="filterValue")
    limit: int = 100


class DataQueryResult(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    length: int = 0
