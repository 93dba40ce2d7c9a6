"""
gateway.py — Entity gateway adapters
====================================
The entity gateway is the single source of truth for tickets, users,
categories and invitations. Two adapters live here:

  - InMemoryGateway   : dict-backed store for local runs and tests
  - HttpEntityGateway : REST client for the hosted entity service

Both speak the same contract:

    list(entity, sort)              -> list of records
    filter(entity, query, sort)     -> records whose fields equal query
    get(entity, id)                 -> one record
    create(entity, fields)          -> the created record
    update(entity, id, fields)      -> the updated record

Sort keys follow the hosted service convention: "last_reply" ascending,
"-last_reply" descending. The gateway does no required-field checks;
that is the engine's job. Neither adapter offers transactions or
version checks, so concurrent updates to one record are last-write-wins.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import requests
from pydantic import BaseModel, ValidationError as PydanticValidationError

from quickdesk.errors import EntityNotFoundError, GatewayError
from quickdesk.logging_config import get_logger
from quickdesk.schema import ENTITY_MODELS

logger = get_logger(__name__)


def _model_for(entity: str) -> type[BaseModel]:
    try:
        return ENTITY_MODELS[entity]
    except KeyError:
        raise GatewayError(f"Unknown entity type: {entity}", operation=f"{entity}.resolve")


def _sort_records(records: list[BaseModel], sort: Optional[str]) -> list[BaseModel]:
    if not sort:
        return records
    descending = sort.startswith("-")
    field = sort.lstrip("-")

    def key(record: BaseModel):
        value = getattr(record, field, None)
        # None sorts before every real value ascending, after them descending.
        return (value is not None, value if value is not None else "")

    return sorted(records, key=key, reverse=descending)


class EntityGateway:
    """Async CRUD contract shared by the adapters."""

    async def list(self, entity: str, sort: Optional[str] = None) -> list[Any]:
        raise NotImplementedError

    async def filter(self, entity: str, query: dict, sort: Optional[str] = None) -> list[Any]:
        raise NotImplementedError

    async def get(self, entity: str, entity_id: str) -> Any:
        raise NotImplementedError

    async def create(self, entity: str, fields: dict) -> Any:
        raise NotImplementedError

    async def update(self, entity: str, entity_id: str, fields: dict) -> Any:
        raise NotImplementedError


# ── In-memory adapter ─────────────────────────────────────────────────────────

class InMemoryGateway(EntityGateway):
    """
    Records are stored per entity type in insertion order. Every read and
    write hands back a deep copy, so a caller mutating a returned object
    never changes what is stored.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, BaseModel]] = {name: {} for name in ENTITY_MODELS}

    def seed(self, entity: str, records: list[BaseModel]) -> None:
        store = self._records[entity]
        for record in records:
            store[record.id] = record.model_copy(deep=True)

    def _store(self, entity: str) -> dict[str, BaseModel]:
        _model_for(entity)
        return self._records[entity]

    async def list(self, entity: str, sort: Optional[str] = None) -> list[Any]:
        records = [r.model_copy(deep=True) for r in self._store(entity).values()]
        return _sort_records(records, sort)

    async def filter(self, entity: str, query: dict, sort: Optional[str] = None) -> list[Any]:
        records = [
            r.model_copy(deep=True)
            for r in self._store(entity).values()
            if all(getattr(r, field, None) == value for field, value in query.items())
        ]
        return _sort_records(records, sort)

    async def get(self, entity: str, entity_id: str) -> Any:
        record = self._store(entity).get(entity_id)
        if record is None:
            raise EntityNotFoundError(
                f"No {entity} found with ID: {entity_id}",
                operation=f"{entity}.get",
                entity_id=entity_id,
            )
        return record.model_copy(deep=True)

    async def create(self, entity: str, fields: dict) -> Any:
        model = _model_for(entity)
        try:
            record = model(**fields)
        except PydanticValidationError as e:
            raise GatewayError(f"Invalid {entity} data: {e}", operation=f"{entity}.create")
        self._store(entity)[record.id] = record
        return record.model_copy(deep=True)

    async def update(self, entity: str, entity_id: str, fields: dict) -> Any:
        store = self._store(entity)
        current = store.get(entity_id)
        if current is None:
            raise EntityNotFoundError(
                f"No {entity} found with ID: {entity_id}",
                operation=f"{entity}.update",
                entity_id=entity_id,
            )
        model = _model_for(entity)
        try:
            record = model(**{**current.model_dump(), **fields, "id": entity_id})
        except PydanticValidationError as e:
            raise GatewayError(
                f"Invalid {entity} data: {e}",
                operation=f"{entity}.update",
                entity_id=entity_id,
            )
        store[entity_id] = record
        return record.model_copy(deep=True)


# ── Hosted service adapter ────────────────────────────────────────────────────

class HttpEntityGateway(EntityGateway):
    """
    REST client for the hosted entity service.

        GET  {base}/entities/{Entity}?sort=-last_reply
        GET  {base}/entities/{Entity}?q={"requester_email": "..."}
        GET  {base}/entities/{Entity}/{id}
        POST {base}/entities/{Entity}
        PUT  {base}/entities/{Entity}/{id}

    requests is blocking, so each call runs in a worker thread.
    """

    def __init__(self, base_url: str, api_token: str = "", timeout_s: float = 15.0,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    def _url(self, entity: str, entity_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/entities/{entity}"
        if entity_id:
            url = f"{url}/{entity_id}"
        return url

    def _request(self, method: str, entity: str, operation: str,
                 entity_id: Optional[str] = None, params: Optional[dict] = None,
                 payload: Optional[dict] = None) -> Any:
        url = self._url(entity, entity_id)
        logger.debug("%s %s", method, url)
        resp = None
        try:
            resp = self.session.request(
                method,
                url,
                headers=self.headers,
                params=params,
                json=payload,
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as e:
            status = resp.status_code if resp is not None else None
            if status == 404 and entity_id:
                raise EntityNotFoundError(
                    f"No {entity} found with ID: {entity_id}",
                    operation=operation,
                    entity_id=entity_id,
                )
            detail = resp.text if resp is not None else str(e)
            raise GatewayError(
                f"Entity service error ({status}): {detail}",
                operation=operation,
                entity_id=entity_id,
            )
        # requests.JSONDecodeError is also a RequestException.
        except requests.exceptions.JSONDecodeError:
            raise GatewayError(
                "Entity service response was not valid JSON",
                operation=operation,
                entity_id=entity_id,
            )
        except requests.RequestException as e:
            raise GatewayError(
                f"Network error calling entity service: {e}",
                operation=operation,
                entity_id=entity_id,
            )
        except ValueError:
            raise GatewayError(
                "Entity service response was not valid JSON",
                operation=operation,
                entity_id=entity_id,
            )

    def _parse(self, entity: str, data: Any, operation: str) -> Any:
        model = _model_for(entity)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise GatewayError(f"Unexpected {entity} record: {e}", operation=operation)

    def _parse_many(self, entity: str, data: Any, operation: str) -> list[Any]:
        if not isinstance(data, list):
            raise GatewayError(f"Expected a list of {entity} records", operation=operation)
        return [self._parse(entity, item, operation) for item in data]

    async def list(self, entity: str, sort: Optional[str] = None) -> list[Any]:
        operation = f"{entity}.list"
        params = {"sort": sort} if sort else None
        data = await asyncio.to_thread(self._request, "GET", entity, operation, params=params)
        return self._parse_many(entity, data, operation)

    async def filter(self, entity: str, query: dict, sort: Optional[str] = None) -> list[Any]:
        operation = f"{entity}.filter"
        params = {"q": json.dumps(query)}
        if sort:
            params["sort"] = sort
        data = await asyncio.to_thread(self._request, "GET", entity, operation, params=params)
        return self._parse_many(entity, data, operation)

    async def get(self, entity: str, entity_id: str) -> Any:
        operation = f"{entity}.get"
        data = await asyncio.to_thread(self._request, "GET", entity, operation, entity_id=entity_id)
        return self._parse(entity, data, operation)

    async def create(self, entity: str, fields: dict) -> Any:
        operation = f"{entity}.create"
        data = await asyncio.to_thread(self._request, "POST", entity, operation, payload=fields)
        return self._parse(entity, data, operation)

    async def update(self, entity: str, entity_id: str, fields: dict) -> Any:
        operation = f"{entity}.update"
        data = await asyncio.to_thread(
            self._request, "PUT", entity, operation, entity_id=entity_id, payload=fields
        )
        return self._parse(entity, data, operation)
