#    Copyright 2025 FAO
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
#
#    Author: Carlo Cancellieri (ccancellieri@gmail.com)
#    Company: FAO, Viale delle Terme di Caracalla, 00100 Rome, Italy
#    Contact: copyright@fao.org - http://fao.org/contact-us/terms/en/

# tests/test_fastapi_identify.py
from typing import Optional

import pytest
from fastapi import Depends, FastAPI
from starlette.testclient import TestClient

from telegram_identify.fastapi_middleware.fastapi_identify import IdentifyMiddleware
from telegram_identify.fastapi_middleware.tools import get_current_user, require_auth
from telegram_identify.shared.models import TelegramIdentity
from telegram_identify.shared.validators import LoginWidgetValidator


@pytest.fixture
def client(bot_token, now):
    app = FastAPI()
    app.add_middleware(
        IdentifyMiddleware,
        validators=[LoginWidgetValidator(bot_token, now=lambda: now)],
    )

    @app.get("/auth/telegram")
    async def telegram_callback(user: TelegramIdentity = Depends(require_auth)):
        return {"id": user.id, "name": user.display_name}

    @app.get("/items")
    async def items(id: int):
        return {"item": id}

    @app.get("/public")
    async def public(user: Optional[TelegramIdentity] = Depends(get_current_user)):
        return {"user": user.id if user else None}

    return TestClient(app)


def test_middleware_success_flow(client, sign, login_fields):
    response = client.get("/auth/telegram", params=sign(login_fields))
    assert response.status_code == 200
    assert response.json() == {"id": 42, "name": "John Doe"}


def test_middleware_public_access(client):
    response = client.get("/public")
    assert response.status_code == 200
    assert response.json() == {"user": None}


def test_middleware_ignores_plain_id_parameter(client):
    response = client.get("/items", params={"id": "5"})
    assert response.status_code == 200
    assert response.json() == {"item": 5}


def test_require_auth_without_callback(client):
    response = client.get("/auth/telegram")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_middleware_tampered_data(client, sign, login_fields):
    params = sign(login_fields)
    params["id"] = "43"
    response = client.get("/public", params=params)
    assert response.status_code == 401
    assert response.json()["detail"] == "telegram hash is invalid"


def test_middleware_missing_hash(client, login_fields):
    response = client.get("/auth/telegram", params=login_fields)
    assert response.status_code == 400
    assert response.json()["detail"] == "telegram hash is required"


def test_middleware_expired(client, sign, now):
    params = sign({"id": "42", "auth_date": str(now - 301)})
    response = client.get("/auth/telegram", params=params)
    assert response.status_code == 401
    assert response.json()["detail"] == "telegram auth_date is expired"


def test_middleware_invalid_id(client, sign, now):
    params = sign({"id": "0", "auth_date": str(now)})
    response = client.get("/auth/telegram", params=params)
    assert response.status_code == 400
    assert response.json()["detail"] == "telegram id is invalid: '0'"
