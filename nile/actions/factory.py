"""
Generate CRUD actions for a table-backed sub-service.
Generated actions are type="auto" and protected unless listed in sub.public_actions.
"""
import dataclasses
import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from nile.actions.protocol import Action, SubService
from nile.actions.validation import Validation
from nile.core.logs import log_error
from nile.core.result import SafeResult, ok, safe_error
from nile.storage.protocol import StoreError, TableStore

logger = logging.getLogger(__name__)

AUTO_ACTIONS = (
    "create",
    "getAll",
    "getOne",
    "update",
    "delete",
    "getEvery",
    "getManyWith",
    "getOneWith",
    "deleteAll",
)

# injected by the executor for agent/system identities; never written to tables
IDENTITY_KEYS = ("user_id", "organization_id", "userId", "organizationId", "triggered_by")


class SortKey(BaseModel):
    field: str
    direction: Literal["asc", "desc"]


class GetAllPayload(BaseModel):
    property: str = Field(min_length=1)
    value: Any


class GetManyWithPayload(BaseModel):
    page: Optional[int] = Field(default=None, gt=0)
    perPage: Optional[int] = Field(default=None, gt=0)
    sort: Optional[List[SortKey]] = None
    filters: Optional[Dict[str, Any]] = None


class GetOneWithPayload(BaseModel):
    filters: Optional[Dict[str, Any]] = None


def _strip_identity(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in IDENTITY_KEYS}


def _id_fields(id_name: str) -> Dict[str, Tuple[Any, Any]]:
    return {id_name: (str, Field(min_length=1))}


def _identity_fields() -> Dict[str, Tuple[Any, Any]]:
    return {k: (Optional[str], None) for k in IDENTITY_KEYS}


def _failed(message: str, at_function: str, data: Any = None) -> SafeResult:
    error_id = log_error(logger, message, at_function=at_function, data=data)
    return safe_error(message, error_id)


def generate_actions(sub: SubService, store: TableStore) -> List[Action]:
    table = sub.table_name
    id_name = sub.id_name
    base_validation = sub.validation if isinstance(sub.validation, Validation) else Validation(model=sub.model)

    def is_protected(name: str) -> bool:
        return name not in sub.public_actions

    async def create(data, context=None):
        try:
            row = await store.create_item(_strip_identity(data or {}))
        except StoreError as e:
            return _failed(f"Error creating new record in {table}", "create", str(e))
        return ok(row)

    async def get_all(data, context=None):
        try:
            rows = await store.get_many(data["property"], data["value"])
        except (KeyError, StoreError) as e:
            return _failed(f"Error getting all records from {table}", "getAll", str(e))
        return ok(rows)

    async def get_one(data, context=None):
        if not (data or {}).get(id_name):
            return _failed(f"Missing {id_name} in payload", "getOne")
        try:
            row = await store.get_one(id_name, data[id_name])
        except StoreError as e:
            return _failed(f"Error getting record from {table}", "getOne", str(e))
        if row is None:
            return safe_error(f"Record {data[id_name]} not found in {table}", "record-not-found")
        return ok(row)

    async def update_(data, context=None):
        if not (data or {}).get(id_name):
            return _failed(f"Missing {id_name} in payload!", "update")
        try:
            row = await store.update_item(id_name, data[id_name], _strip_identity(data))
        except StoreError as e:
            return _failed(f"Error updating record in {table}", "update", str(e))
        if row is None:
            return safe_error(f"Record {data[id_name]} not found in {table}", "record-not-found")
        return ok(row)

    async def delete_(data, context=None):
        if not (data or {}).get(id_name):
            return _failed(f"Missing {id_name} in payload!", "delete")
        try:
            row = await store.delete_one(id_name, data[id_name])
        except StoreError as e:
            return _failed(f"Error deleting record from {table}", "delete", str(e))
        if row is None:
            return safe_error(f"Record {data[id_name]} not found in {table}", "record-not-found")
        return ok(row)

    async def get_every(data=None, context=None):
        try:
            return ok(await store.get_all())
        except StoreError as e:
            return _failed(f"Error getting every record from {table}", "getEvery", str(e))

    async def get_many_with(data, context=None):
        data = data or {}
        try:
            result = await store.get_many_with(
                page=data.get("page"),
                per_page=data.get("perPage"),
                sort=data.get("sort"),
                filters=data.get("filters"),
            )
        except StoreError as e:
            return _failed(f"Error getting records from {table}", "getManyWith", str(e))
        return ok(result)

    async def get_one_with(data, context=None):
        try:
            return ok(await store.get_one_with(filters=(data or {}).get("filters")))
        except StoreError as e:
            return _failed(f"Error getting record from {table}", "getOneWith", str(e))

    async def delete_all(data=None, context=None):
        try:
            return ok({"deleted": await store.delete_all()})
        except StoreError as e:
            return _failed(f"Error deleting all records from {table}", "deleteAll", str(e))

    create_validation = update_validation = None
    if base_validation.model is not None or base_validation.custom_fields:
        create_validation = Validation(
            model=base_validation.model,
            omit_fields=base_validation.omit_fields,
            custom_fields={**(base_validation.custom_fields or {}), **_identity_fields()},
            mode=base_validation.mode,
            modifier=base_validation.modifier,
            operation="create",
        )
        update_validation = dataclasses.replace(create_validation, operation="update")
    id_validation = Validation(custom_fields=_id_fields(id_name))

    specs = [
        ("create", create, f"Create a new record in {table}", create_validation),
        ("getAll", get_all, f"Get all records from {table}", GetAllPayload),
        ("getOne", get_one, f"Get one record from {table}", id_validation),
        ("update", update_, f"Update a record in {table}", update_validation),
        ("delete", delete_, f"Delete a record from {table}", id_validation),
        ("getEvery", get_every, f"Get every record from {table}", None),
        ("getManyWith", get_many_with, f"Get a page of records from {table}", GetManyWithPayload),
        ("getOneWith", get_one_with, f"Get one record from {table} matching filters", GetOneWithPayload),
        ("deleteAll", delete_all, f"Delete all records from {table}", None),
    ]
    return [
        Action(
            name=name,
            handler=handler,
            description=description,
            validation=validation,
            is_protected=is_protected(name),
            type="auto",
        )
        for name, handler, description, validation in specs
    ]

