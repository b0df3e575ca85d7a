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
"""Tests for crud_exception_handler status mapping and error bodies."""

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from mixcrud.kernel.exceptions import (
    ConfigurationMissingException,
    CrudException,
    InvalidRequestException,
    ResourceNotFoundException,
    UnexpectedFailureException,
    ValidationException,
)
from mixcrud.web.errors import crud_exception_handler, status_for


def make_test_app() -> Starlette:
    async def not_found(request: Request):
        raise ResourceNotFoundException.for_entity("User", 999)

    async def invalid(request: Request):
        raise ValidationException(
            "Validation failed: username: too short",
            code="VALIDATION_ERROR",
            context={"errors": [{"field": "username", "constraint": "too short"}]},
        )

    async def unexpected(request: Request):
        raise UnexpectedFailureException(context={"entity": "User", "operation": "find_all"})

    async def crash(request: Request):
        raise RuntimeError("secret internals")

    async def ok(request: Request):
        return JSONResponse({"status": "ok"})

    handlers = {CrudException: crud_exception_handler, Exception: crud_exception_handler}
    routes = [
        Route("/not-found", not_found),
        Route("/invalid", invalid),
        Route("/unexpected", unexpected),
        Route("/crash", crash),
        Route("/ok", ok),
    ]
    return Starlette(routes=routes, exception_handlers=handlers)


class TestStatusFor:
    @pytest.mark.parametrize(
        "exc, status",
        [
            (ResourceNotFoundException("x"), 404),
            (ValidationException("x"), 400),
            (InvalidRequestException("x"), 400),
            (ConfigurationMissingException("x"), 500),
            (UnexpectedFailureException(), 500),
            (CrudException("x"), 500),
            (KeyError("x"), 500),
        ],
    )
    def test_mapping(self, exc, status):
        assert status_for(exc) == status


class TestCrudExceptionHandler:
    def setup_method(self):
        self.client = TestClient(make_test_app(), raise_server_exceptions=False)

    def test_not_found_returns_404(self):
        resp = self.client.get("/not-found")
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["message"] == "Entity User with id 999 not found"
        assert error["code"] == "NOT_FOUND"
        assert error["status"] == 404
        assert error["path"] == "/not-found"
        assert error["context"] == {"entity": "User", "id": "999"}

    def test_validation_returns_400_with_violations(self):
        resp = self.client.get("/invalid")
        assert resp.status_code == 400
        assert resp.json()["error"]["context"]["errors"] == [{"field": "username", "constraint": "too short"}]

    def test_server_failures_hide_context(self):
        resp = self.client.get("/unexpected")
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "UNEXPECTED_FAILURE"
        assert error["message"] == "Unexpected error occurred"
        assert "context" not in error

    def test_unknown_exception_is_generic(self):
        resp = self.client.get("/crash")
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert "secret" not in resp.text

    def test_ok_returns_200(self):
        resp = self.client.get("/ok")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
