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

# tests/conftest.py
import hashlib
import hmac

import pytest

from telegram_identify.shared.models import VerifyConfig

TEST_BOT_TOKEN = "test-token"
NOW = 1800000000


def sign_fields(fields, bot_token=TEST_BOT_TOKEN):
    """Signs `fields` the way the Telegram Login Widget does."""
    pairs = sorted(f"{key}={value}" for key, value in fields.items() if key != "hash")
    data_check_string = "\n".join(pairs)
    secret = hashlib.sha256(bot_token.encode()).digest()
    return hmac.new(secret, data_check_string.encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def bot_token():
    return TEST_BOT_TOKEN


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def frozen_config():
    return VerifyConfig(now=lambda: NOW)


@pytest.fixture
def sign():
    def _sign(fields, bot_token=TEST_BOT_TOKEN):
        signed = dict(fields)
        signed["hash"] = sign_fields(fields, bot_token)
        return signed
    return _sign


@pytest.fixture
def login_fields():
    return {
        "id": "42",
        "auth_date": str(NOW),
        "username": "john_doe",
        "first_name": "John",
        "last_name": "Doe",
        "photo_url": "https://example.com/avatar.jpg",
    }
