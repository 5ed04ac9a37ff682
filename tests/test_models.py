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

# tests/test_models.py
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from telegram_identify.shared.models import (
    DEFAULT_AUTH_TTL,
    DEFAULT_CLOCK_SKEW,
    TelegramIdentity,
    VerifyConfig,
)


def test_verify_config_defaults():
    config = VerifyConfig()
    assert config.auth_ttl == timedelta(minutes=5) == DEFAULT_AUTH_TTL
    assert config.clock_skew == timedelta(seconds=30) == DEFAULT_CLOCK_SKEW
    assert callable(config.now)


def test_verify_config_accepts_seconds():
    config = VerifyConfig(auth_ttl=3600, clock_skew=5.5)
    assert config.auth_ttl == timedelta(hours=1)
    assert config.clock_skew == timedelta(seconds=5.5)


@pytest.mark.parametrize("value", [0, -1, timedelta(seconds=-30), None])
def test_verify_config_non_positive_durations(value):
    config = VerifyConfig(auth_ttl=value, clock_skew=value, now=None)
    assert config.auth_ttl == DEFAULT_AUTH_TTL
    assert config.clock_skew == DEFAULT_CLOCK_SKEW
    assert callable(config.now)


def test_verify_config_rejects_non_callable_clock():
    with pytest.raises(ValidationError):
        VerifyConfig(now=1800000000)


def test_telegram_identity_helpers():
    identity = TelegramIdentity(id=42, first_name="John", last_name="Doe", username="john_doe", auth_date=0)
    assert identity.display_name == "John Doe"
    assert identity.auth_datetime == datetime(1970, 1, 1, tzinfo=timezone.utc)

    assert TelegramIdentity(id=42, username="john_doe", auth_date=0).display_name == "john_doe"
    assert TelegramIdentity(id=42, auth_date=0).display_name == "42"


def test_telegram_identity_requires_positive_id():
    with pytest.raises(ValidationError):
        TelegramIdentity(id=0, auth_date=0)
