import random
import httpx
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from config.settings import settings
from core.exceptions import ConfigurationError, OdooAPIError, SessionExpiredError, ValidationError
from models.odoo import (DataQueryParams, DataQueryResult, Faculty, GroupPermission,
                         ModelField, OdooGroup)

FACULTY_FIELDS = [
    "id", "name", "department_id", "campus_id", "joining_date",
    "identification_id", "login", "official_email", "contact_number1",
    "res_group_id",
]
ACCESS_FIELDS = ["model_id", "perm_read", "perm_write", "perm_create", "perm_unlink"]
FIELD_ATTRIBUTES = ["string", "type", "required", "readonly", "relation"]
ACCESS_LIMIT = 1000

SESSION_EXPIRED_EXCEPTION = "odoo.http.SessionExpiredException"
SESSION_EXPIRED_MESSAGE = "Session Expired: Please update your Odoo session key"


def request_id(digits: int = 9) -> int:
    return random.randint(10 ** (digits - 1), 10 ** digits - 1)


class OdooClient:
    def __init__(self, session_id=None, base_url=None, mock=None,
                 timeout=None, transport=None):
        self.mock = settings.MOCK_MODE if mock is None else mock
        self.base_url = (base_url if base_url is not None else settings.ODOO_URL).rstrip("/")
        self.session_id = session_id or settings.ODOO_SESSION_ID
        self.timeout = timeout or settings.ODOO_TIMEOUT
        self.transport = transport
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.mock:
            logger.debug("OdooClient: MOCK MODE active.")
        else:
            logger.debug(f"OdooClient: using {self.base_url}")

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def session_info(self) -> dict:
        if self.mock:
            return self._mock_session()
        return self._call("/web/session/get_session_info", {}) or {}

    # ------------------------------------------------------------------
    # Faculty
    # ------------------------------------------------------------------
    def search_faculty(self, query: str, limit: int = 10) -> list[Faculty]:
        if not query.strip():
            return []
        if self.mock:
            rows = [f for f in self._mock_faculty()
                    if query.lower() in f["name"].lower()][:limit]
        else:
            rows = self.search_read(
                settings.FACULTY_MODEL, FACULTY_FIELDS,
                [["name", "ilike", query]], limit=limit,
            )["records"]
        logger.info(f"Faculty search '{query}' → {len(rows)} records")
        return [Faculty.model_validate(r) for r in rows]

    def get_faculty(self, faculty_id: int):
        if self.mock:
            rows = [f for f in self._mock_faculty() if f["id"] == faculty_id]
        else:
            rows = self.search_read(
                settings.FACULTY_MODEL, FACULTY_FIELDS,
                [["id", "=", faculty_id]], limit=1,
            )["records"]
        return Faculty.model_validate(rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Groups and access rights
    # ------------------------------------------------------------------
    def get_groups(self, group_ids: list[int]) -> list[OdooGroup]:
        if not group_ids:
            return []
        if self.mock:
            rows = [g for g in self._mock_groups() if g["id"] in group_ids]
        else:
            rows = self.call_kw(
                "res.groups", "search_read", [[["id", "in", list(group_ids)]]],
                {"fields": ["name", "full_name"]},
            ) or []
        return [OdooGroup.model_validate(r) for r in rows]

    def group_names(self, group_ids: list[int]) -> dict[int, str]:
        return {g.id: g.display_name for g in self.get_groups(group_ids)}

    def search_groups(self, query: str, limit: int = 20) -> list[OdooGroup]:
        if self.mock:
            rows = [g for g in self._mock_groups()
                    if query.lower() in g["full_name"].lower()][:limit]
        else:
            rows = self.call_kw(
                "res.groups", "search_read", [[["full_name", "ilike", query]]],
                {"fields": ["name", "full_name"], "limit": limit},
            ) or []
        return [OdooGroup.model_validate(r) for r in rows]

    def get_group_permissions(self, group_id: int) -> list[GroupPermission]:
        if self.mock:
            rows = self._mock_access(group_id)
        else:
            rows = self.call_kw(
                "ir.model.access", "search_read", [[["group_id", "=", int(group_id)]]],
                {"fields": ACCESS_FIELDS, "limit": ACCESS_LIMIT},
            ) or []
        logger.info(f"Group {group_id} → {len(rows)} access rules")
        return [GroupPermission.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Models and ad-hoc queries
    # ------------------------------------------------------------------
    def get_model_fields(self, model: str) -> list[ModelField]:
        if not model:
            raise ValidationError("model_id is required")
        if self.mock:
            meta = self._mock_fields(model)
        else:
            meta = self.call_kw(model, "fields_get", [],
                                {"attributes": FIELD_ATTRIBUTES}) or {}
        return [ModelField.model_validate({**attrs, "name": name})
                for name, attrs in sorted(meta.items())]

    def data_query(self, params: DataQueryParams) -> DataQueryResult:
        if not params.model or not params.fields:
            raise ValidationError("Model and fields are required")
        domain = []
        if params.filter_field and params.filter_value not in (None, ""):
            domain.append([params.filter_field, "=", params.filter_value])
        if self.mock:
            rows = self._mock_records(params.model, params.fields, domain)[:params.limit]
            return DataQueryResult(records=rows, length=len(rows))
        result = self.search_read(params.model, params.fields, domain, limit=params.limit)
        return DataQueryResult(records=result["records"], length=result["length"])

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------
    def search_read(self, model: str, fields: list[str], domain: list,
                    limit: int = 100, offset: int = 0, sort: str = "") -> dict:
        result = self._call("/web/dataset/search_read", {
            "model": model,
            "fields": fields,
            "domain": domain,
            "context": self._context(),
            "offset": offset,
            "limit": limit,
            "sort": sort,
        }) or {}
        return {"records": result.get("records", []), "length": result.get("length", 0)}

    def call_kw(self, model: str, method: str, args=None, kwargs=None):
        return self._call("/web/dataset/call_kw", {
            "model": model,
            "method": method,
            "args": args or [],
            "kwargs": kwargs or {},
        })

    def _context(self) -> dict:
        return {"lang": settings.ODOO_LANG, "tz": settings.ODOO_TZ, "bin_size": True}

    def _call(self, endpoint: str, params: dict):
        if not self.base_url:
            raise ConfigurationError("ODOO_URL is not configured")
        if not self.session_id:
            raise SessionExpiredError("Session ID not configured")
        payload = {"jsonrpc": "2.0", "method": "call", "params": params, "id": request_id()}
        try:
            resp = self._post(endpoint, payload)
        except httpx.TransportError as e:
            raise OdooAPIError(f"Cannot reach Odoo: {e}", status_code=502) from e
        return self._unwrap(endpoint, resp)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _post(self, endpoint: str, payload: dict) -> httpx.Response:
        headers = {**self.headers, "Cookie": f"session_id={self.session_id}"}
        try:
            with httpx.Client(headers=headers, timeout=self.timeout,
                              transport=self.transport) as client:
                return client.post(f"{self.base_url}{endpoint}", json=payload)
        except httpx.TransportError as e:
            logger.error(f"Cannot reach Odoo on {endpoint}: {e}")
            raise

    def _unwrap(self, endpoint: str, resp: httpx.Response):
        if resp.status_code in (401, 403):
            logger.error(f"Session rejected on {endpoint}: HTTP {resp.status_code}")
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE)
        if resp.is_error:
            logger.error(f"HTTP error on {endpoint}: {resp.status_code}")
            raise OdooAPIError(f"Odoo API request failed: {resp.reason_phrase}",
                               status_code=resp.status_code, details=resp.text)
        try:
            data = resp.json()
        except ValueError as e:
            logger.error(f"Non-JSON response on {endpoint}")
            raise OdooAPIError("Odoo returned a non-JSON response",
                               status_code=502, details=resp.text[:500]) from e

        if not isinstance(data, dict):
            logger.error(f"Unexpected JSON-RPC body on {endpoint}")
            raise OdooAPIError("Odoo returned an unexpected response",
                               status_code=502, details=resp.text[:500])

        error = data.get("error")
        if error:
            name = (error.get("data") or {}).get("name") if isinstance(error, dict) else None
            logger.error(f"Odoo RPC error on {endpoint}: {name or error}")
            if name == SESSION_EXPIRED_EXCEPTION:
                raise SessionExpiredError(SESSION_EXPIRED_MESSAGE)
            raise OdooAPIError("Odoo API returned an error", status_code=500, details=error)
        return data.get("result")

    # ==================================================================
    # MOCK DATA
    # ==================================================================
    def _mock_session(self):
        return {"uid": 2, "username": "admin", "name": "Mitchell Admin",
                "db": "odoo-mock", "server_version": "17.0"}

    def _mock_faculty(self):
        return [
            {"id": 101, "name": "Ayesha Khan", "department_id": [7, "Computer Science"],
             "campus_id": [1, "Main Campus"], "joining_date": "2019-08-01",
             "identification_id": "CS-0101", "login": "ayesha.khan",
             "official_email": "ayesha.khan@example.edu",
             "contact_number1": "+92 300 0000101", "res_group_id": [1, 2]},
            {"id": 102, "name": "Bilal Ahmed", "department_id": [8, "Electrical Engineering"],
             "campus_id": [1, "Main Campus"], "joining_date": "2015-01-15",
             "identification_id": "EE-0102", "login": "bilal.ahmed",
             "official_email": "bilal.ahmed@example.edu",
             "contact_number1": False, "res_group_id": [1, 2, 3]},
            {"id": 103, "name": "Sara Malik", "department_id": False,
             "campus_id": [2, "City Campus"], "joining_date": False,
             "identification_id": "MA-0103", "login": "sara.malik",
             "official_email": False, "contact_number1": False,
             "res_group_id": []},
        ]

    def _mock_groups(self):
        return [
            {"id": 1, "name": "Internal User", "full_name": "User types / Internal User"},
            {"id": 2, "name": "Instructor", "full_name": "OBE / Instructor"},
            {"id": 3, "name": "Settings", "full_name": "Administration / Settings"},
        ]

    def _mock_access(self, group_id):
        models = ["res.partner", "res.users", "obe.core.faculty", "obe.core.course",
                  "obe.core.assessment", "obe.core.result", "ir.attachment", "mail.message"]
        rights = {
            1: (True, False, False, False),
            2: (True, True, True, False),
            3: (True, True, True, True),
        }.get(int(group_id))
        if rights is None:
            return []
        read, write, create, unlink = rights
        return [
            {"id": int(group_id) * 100 + i, "model_id": [500 + i, model],
             "perm_read": read, "perm_write": write,
             "perm_create": create, "perm_unlink": unlink and i % 2 == 0}
            for i, model in enumerate(models)
        ]

    def _mock_fields(self, model):
        return {
            "id": {"string": "ID", "type": "integer", "required": False, "readonly": True},
            "name": {"string": "Name", "type": "char", "required": True, "readonly": False},
            "create_uid": {"string": "Created by", "type": "many2one",
                           "required": False, "readonly": True, "relation": "res.users"},
            "write_date": {"string": "Last Updated on", "type": "datetime",
                           "required": False, "readonly": True},
        }

    def _mock_records(self, model, fields, domain):
        if model != settings.FACULTY_MODEL:
            return []
        rows = self._mock_faculty()
        for field, _, value in domain:
            rows = [r for r in rows if str(r.get(field)) == str(value)]
        return [{k: r.get(k, False) for k in fields} for r in rows]
