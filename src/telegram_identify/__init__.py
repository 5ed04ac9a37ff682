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

from telegram_identify.shared.models import (
    DEFAULT_AUTH_TTL,
    DEFAULT_CLOCK_SKEW,
    TelegramIdentity,
    VerifyConfig,
)
from telegram_identify.shared.widget_utils import (
    AuthDateExpiredError,
    AuthDateFutureError,
    AuthDateInvalidError,
    AuthDateRequiredError,
    BotTokenRequiredError,
    HashInvalidError,
    HashRequiredError,
    IdentityException,
    IdInvalidError,
    IdRequiredError,
    LoginWidgetError,
    VerificationRejected,
    compute_hash,
    flatten_query_params,
    verify,
    verify_query_params,
    verify_query_string,
    verify_with_config,
)

__all__ = [
    "DEFAULT_AUTH_TTL",
    "DEFAULT_CLOCK_SKEW",
    "TelegramIdentity",
    "VerifyConfig",
    "AuthDateExpiredError",
    "AuthDateFutureError",
    "AuthDateInvalidError",
    "AuthDateRequiredError",
    "BotTokenRequiredError",
    "HashInvalidError",
    "HashRequiredError",
    "IdentityException",
    "IdInvalidError",
    "IdRequiredError",
    "LoginWidgetError",
    "VerificationRejected",
    "compute_hash",
    "flatten_query_params",
    "verify",
    "verify_query_params",
    "verify_query_string",
    "verify_with_config",
]
