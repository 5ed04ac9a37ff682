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

"""
Verification of Telegram Login Widget callback data.

The widget redirects the user back with signed fields (id, first_name,
last_name, username, photo_url, auth_date, hash). The signature is an
HMAC-SHA-256 over the sorted "key=value" lines of every field but `hash`,
keyed with SHA-256 of the bot token.

See https://core.telegram.org/widgets/login#checking-authorization
"""

import binascii
import hashlib
import hmac
import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs

from telegram_identify.shared.models import Clock, TelegramIdentity, VerifyConfig

HASH_FIELD = "hash"
ID_FIELD = "id"
AUTH_DATE_FIELD = "auth_date"
PROFILE_FIELDS = ("username", "first_name", "last_name", "photo_url")

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class IdentityException(Exception):
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"[{status_code}] {detail}")


class LoginWidgetError(IdentityException):
    """Base class for every Telegram Login Widget failure."""

    code = "login_widget_error"
    status_code = 400
    message = "telegram login data rejected"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(self.status_code, detail or self.message)


class BotTokenRequiredError(LoginWidgetError):
    code = "bot_token_required"
    status_code = 500
    message = "bot token is required"


class VerificationRejected(LoginWidgetError):
    """The callback data itself was rejected (as opposed to a configuration problem)."""

    code = "verification_rejected"


class HashRequiredError(VerificationRejected):
    code = "hash_required"
    message = "telegram hash is required"


class HashInvalidError(VerificationRejected):
    # Raised for malformed and for mismatching hashes alike.
    code = "hash_invalid"
    status_code = 401
    message = "telegram hash is invalid"


class IdRequiredError(VerificationRejected):
    code = "id_required"
    message = "telegram id is required"


class IdInvalidError(VerificationRejected):
    code = "id_invalid"
    message = "telegram id is invalid"


class AuthDateRequiredError(VerificationRejected):
    code = "auth_date_required"
    message = "telegram auth_date is required"


class AuthDateInvalidError(VerificationRejected):
    code = "auth_date_invalid"
    message = "telegram auth_date is invalid"


class AuthDateFutureError(VerificationRejected):
    code = "auth_date_future"
    status_code = 401
    message = "telegram auth_date is from future"


class AuthDateExpiredError(VerificationRejected):
    code = "auth_date_expired"
    status_code = 401
    message = "telegram auth_date is expired"


def build_data_check_string(fields: Mapping[str, Any]) -> bytes:
    """
    Builds the data check string signed by Telegram.

    Every field except `hash` becomes a "key=value" line; lines are sorted by
    their UTF-8 bytes and joined with a single newline (no trailing newline).
    """
    lines = sorted(
        f"{key}={value}".encode("utf-8", "surrogatepass")
        for key, value in fields.items()
        if key != HASH_FIELD
    )
    return b"\n".join(lines)


def derive_secret_key(bot_token: str) -> bytes:
    return hashlib.sha256(bot_token.strip().encode("utf-8")).digest()


def _signature(fields: Mapping[str, Any], bot_token: str) -> bytes:
    return hmac.new(
        derive_secret_key(bot_token), build_data_check_string(fields), hashlib.sha256
    ).digest()


def compute_hash(fields: Mapping[str, Any], bot_token: str) -> str:
    """Returns the hex signature Telegram would attach to `fields`."""
    return _signature(fields, bot_token).hex()


def verify_hash(fields: Mapping[str, Any], bot_token: str, expected_hash: str) -> None:
    try:
        expected = binascii.unhexlify(expected_hash.strip())
    except (binascii.Error, ValueError):
        raise HashInvalidError() from None

    if not hmac.compare_digest(_signature(fields, bot_token), expected):
        raise HashInvalidError()


def check_auth_date(auth_date: int, now: float, config: VerifyConfig) -> None:
    if auth_date > now + config.clock_skew.total_seconds():
        raise AuthDateFutureError()
    if now - auth_date > config.auth_ttl.total_seconds():
        raise AuthDateExpiredError()


def _current_time(clock: Clock) -> float:
    now = clock()
    if isinstance(now, datetime):
        # Naive datetimes are UTC, never host local time.
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.timestamp()
    return float(now)


def _parse_int64(value: str) -> Optional[int]:
    if not _INTEGER_RE.fullmatch(value):
        return None
    number = int(value)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number


def _stripped(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return "" if value is None else str(value).strip()


def _verbatim(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return "" if value is None else str(value)


def verify_with_config(
    fields: Mapping[str, Any], bot_token: str, config: Optional[VerifyConfig] = None
) -> TelegramIdentity:
    """
    Verifies Telegram Login Widget callback data.

    Checks run in a fixed order and the first failure is raised: hash present,
    hash valid, id present and positive, auth_date present and inside the
    freshness window. The hash is checked before any other field, so tampered
    data never reveals which of the later checks would have failed.

    Raises:
        BotTokenRequiredError: bot_token is empty or blank.
        VerificationRejected: one of its subclasses, for rejected data.
    """
    bot_token = (bot_token or "").strip()
    if not bot_token:
        raise BotTokenRequiredError()

    if config is None:
        config = VerifyConfig()

    expected_hash = _stripped(fields, HASH_FIELD)
    if not expected_hash:
        raise HashRequiredError()

    verify_hash(fields, bot_token, expected_hash)

    id_value = _stripped(fields, ID_FIELD)
    if not id_value:
        raise IdRequiredError()

    user_id = _parse_int64(id_value)
    if user_id is None or user_id <= 0:
        raise IdInvalidError(f"{IdInvalidError.message}: {id_value!r}")

    auth_date_value = _stripped(fields, AUTH_DATE_FIELD)
    if not auth_date_value:
        raise AuthDateRequiredError()

    auth_date = _parse_int64(auth_date_value)
    if auth_date is None:
        raise AuthDateInvalidError(f"{AuthDateInvalidError.message}: {auth_date_value!r}")

    check_auth_date(auth_date, _current_time(config.now), config)

    return TelegramIdentity(
        id=user_id,
        auth_date=auth_date,
        **{key: _verbatim(fields, key) for key in PROFILE_FIELDS},
    )


def verify(fields: Mapping[str, Any], bot_token: str) -> TelegramIdentity:
    """Verifies callback data with the default freshness policy."""
    return verify_with_config(fields, bot_token)


def flatten_query_params(values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Flattens a multi-valued parameter container to one value per key.

    Accepts `parse_qs` style dicts of lists, starlette `QueryParams`,
    werkzeug `MultiDict` and plain single-valued mappings. The first value
    wins when a key is repeated; an empty list becomes "".
    """
    getlist = getattr(values, "getlist", None)
    flat: Dict[str, str] = {}
    for key in values:
        items = getlist(key) if getlist is not None else values[key]
        if isinstance(items, str):
            flat[key] = items
            continue
        items = list(items)
        flat[key] = items[0] if items else ""
    return flat


def verify_query_params(
    values: Mapping[str, Any], bot_token: str, config: Optional[VerifyConfig] = None
) -> TelegramIdentity:
    return verify_with_config(flatten_query_params(values), bot_token, config)


def verify_query_string(
    query_string: str, bot_token: str, config: Optional[VerifyConfig] = None
) -> TelegramIdentity:
    """Verifies a raw callback query string such as "id=42&auth_date=...&hash=..."."""
    values = parse_qs(query_string.lstrip("?"), keep_blank_values=True)
    return verify_query_params(values, bot_token, config)
