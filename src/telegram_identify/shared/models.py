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

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DEFAULT_AUTH_TTL = timedelta(minutes=5)
DEFAULT_CLOCK_SKEW = timedelta(seconds=30)

# A clock returns either a POSIX timestamp or a datetime (naive means UTC).
Clock = Callable[[], Union[float, int, datetime]]

_DEFAULT_DURATIONS = {
    "auth_ttl": DEFAULT_AUTH_TTL,
    "clock_skew": DEFAULT_CLOCK_SKEW,
}


class VerifyConfig(BaseModel):
    """
    Freshness policy applied to Telegram Login Widget callbacks.

    Durations may be given as `timedelta` or as a number of seconds.
    None, zero and negative durations fall back to the defaults, they never
    mean "zero tolerance".
    """

    model_config = ConfigDict(frozen=True)

    auth_ttl: timedelta = Field(DEFAULT_AUTH_TTL, description="Maximum accepted age of 'auth_date'.")
    clock_skew: timedelta = Field(DEFAULT_CLOCK_SKEW, description="Maximum accepted distance of 'auth_date' in the future.")
    now: Clock = Field(time.time, description="Current time source, called once per verification.")

    @field_validator("auth_ttl", "clock_skew", mode="before")
    @classmethod
    def _missing_duration(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return _DEFAULT_DURATIONS[info.field_name]
        return value

    @field_validator("auth_ttl", "clock_skew")
    @classmethod
    def _non_positive_duration(cls, value: timedelta, info: ValidationInfo) -> timedelta:
        if value <= timedelta(0):
            return _DEFAULT_DURATIONS[info.field_name]
        return value

    @field_validator("now", mode="before")
    @classmethod
    def _missing_clock(cls, value: Any) -> Any:
        return time.time if value is None else value


class TelegramIdentity(BaseModel):
    id: int = Field(..., gt=0, description="Telegram user identifier.")
    username: str = Field("", description="Telegram username, copied verbatim.")
    first_name: str = Field("", description="Telegram first_name, copied verbatim.")
    last_name: str = Field("", description="Telegram last_name, copied verbatim.")
    photo_url: str = Field("", description="Avatar URL, copied verbatim.")
    auth_date: int = Field(..., description="Validated 'auth_date' (Unix epoch seconds).")

    @property
    def auth_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.auth_date, tz=timezone.utc)

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username or str(self.id)
