# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Starlette routes exposing a :class:`CrudController` over HTTP."""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable
from typing import Any

from pydantic import TypeAdapter
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from mixcrud.kernel.exceptions import ValidationException
from mixcrud.schema.mapper import RecordMapper
from mixcrud.web.controller import CrudController
from mixcrud.web.params import FilterOptionsRequest

ControllerFactory = Callable[[Request], Any]

_mapper = RecordMapper()
_json = TypeAdapter(Any)


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def _render(result: Any, status_code: int = 200) -> JSONResponse:
    """JSON response for a controller result; unshaped records become plain data."""
    return JSONResponse(_json.dump_python(_mapper.to_plain(result), mode="json"), status_code=status_code)


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationException(
            "Validation failed: request body must be valid JSON",
            code="VALIDATION_ERROR",
            context={"errors": [{"field": "", "constraint": "request body must be valid JSON"}]},
        ) from exc


def crud_routes(controller_factory: ControllerFactory, prefix: str = "") -> list[Route]:
    """Build the CRUD routes for the controller returned by *controller_factory*.

    The factory receives the current request and may be sync or async, so
    it can open a session per request (e.g. from ``request.state``).

    Routes::

        POST   {prefix}/              -> create          (201)
        GET    {prefix}/              -> get_all
        GET    {prefix}/{id}          -> get_one
        PUT    {prefix}/{id}          -> update
        PATCH  {prefix}/{id}          -> partial_update
        DELETE {prefix}/{id}          -> delete          (204)
        PATCH  {prefix}/{id}/restore  -> restore

    Register :func:`mixcrud.web.errors.crud_exception_handler` on the
    application to render failures.
    """
    base = prefix.rstrip("/")

    async def controller_for(request: Request) -> CrudController[Any]:
        return await _maybe_await(controller_factory(request))

    async def create(request: Request) -> Response:
        controller = await controller_for(request)
        return _render(await controller.create(await _json_body(request)), status_code=201)

    async def get_all(request: Request) -> Response:
        options = FilterOptionsRequest.options_from_query(request.query_params)
        controller = await controller_for(request)
        return _render(await controller.get_all(options))

    async def get_one(request: Request) -> Response:
        controller = await controller_for(request)
        return _render(await controller.get_one(request.path_params["id"]))

    async def update(request: Request) -> Response:
        controller = await controller_for(request)
        return _render(await controller.update(request.path_params["id"], await _json_body(request)))

    async def partial_update(request: Request) -> Response:
        controller = await controller_for(request)
        return _render(await controller.partial_update(request.path_params["id"], await _json_body(request)))

    async def delete(request: Request) -> Response:
        controller = await controller_for(request)
        await controller.delete(request.path_params["id"])
        return Response(status_code=204)

    async def restore(request: Request) -> Response:
        controller = await controller_for(request)
        return _render(await controller.restore(request.path_params["id"]))

    return [
        Route(f"{base}/", create, methods=["POST"]),
        Route(f"{base}/", get_all, methods=["GET"]),
        Route(f"{base}/{{id}}/restore", restore, methods=["PATCH"]),
        Route(f"{base}/{{id}}", get_one, methods=["GET"]),
        Route(f"{base}/{{id}}", update, methods=["PUT"]),
        Route(f"{base}/{{id}}", partial_update, methods=["PATCH"]),
        Route(f"{base}/{{id}}", delete, methods=["DELETE"]),
    ]
