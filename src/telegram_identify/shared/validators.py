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
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

from telegram_identify.shared.models import Clock, TelegramIdentity, VerifyConfig
from telegram_identify.shared.widget_utils import (
    AUTH_DATE_FIELD,
    HASH_FIELD,
    ID_FIELD,
    BotTokenRequiredError,
    VerificationRejected,
    verify_query_params,
)

logger = logging.getLogger(__name__)

Duration = Union[timedelta, int, float, None]


class IdentityValidator(ABC):
    """
    Abstract base class for identity validators.
    """

    @abstractmethod
    # Use 'Any' for request to support both FastAPI and Flask Requests without hard dependencies
    async def validate(self, request: Any) -> Optional[TelegramIdentity]:
        """
        Validate the request for user authentication.
        Args:
            request: The incoming web framework request object (FastAPI or Flask).
        """
        pass


def get_query_params(request: Any) -> Mapping[str, Any]:
    # Starlette/FastAPI exposes `query_params`, Flask exposes `args`.
    params = getattr(request, "query_params", None)
    if params is None:
        params = getattr(request, "args", None)
    return params if params is not None else {}


def is_widget_callback(params: Mapping[str, Any]) -> bool:
    # A bare `?id=` belongs to the application, not to the widget.
    if HASH_FIELD in params:
        return True
    return ID_FIELD in params and AUTH_DATE_FIELD in params


class LoginWidgetValidator(IdentityValidator):
    """
    Validates the query string Telegram appends when the Login Widget
    redirects the user back to the application.

    Requests without `hash`, and without both `id` and `auth_date`, are not
    widget callbacks and are skipped (None). Any other request is verified
    and either yields a TelegramIdentity or raises the matching LoginWidgetError.
    """

    def __init__(
        self,
        bot_token: str,
        auth_ttl: Duration = None,
        clock_skew: Duration = None,
        now: Optional[Clock] = None,
    ):
        if not bot_token or not bot_token.strip():
            raise BotTokenRequiredError()
        self.bot_token = bot_token
        self.config = VerifyConfig(auth_ttl=auth_ttl, clock_skew=clock_skew, now=now)

    async def validate(self, request: Any) -> Optional[TelegramIdentity]:
        params = get_query_params(request)
        if not is_widget_callback(params):
            return None

        try:
            user_identity = verify_query_params(params, self.bot_token, self.config)
        except VerificationRejected as e:
            logger.warning(f"Telegram login data rejected ({e.code}): {e.detail}")
            raise
        logger.info(f"Telegram login validated for user {user_identity.id}")
        return user_identity
