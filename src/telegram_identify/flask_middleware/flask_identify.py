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
Flask Identity Middleware

This module provides a Flask-compatible identity middleware that integrates
with the IdentityValidator classes.
"""

import logging
from typing import List, Optional

from asgiref.sync import async_to_sync
from flask import Flask, abort, g, request
from werkzeug.local import LocalProxy

from telegram_identify.shared.models import TelegramIdentity
from telegram_identify.shared.validators import IdentityValidator
from telegram_identify.shared.widget_utils import IdentityException


def get_current_user() -> Optional[TelegramIdentity]:
    """Helper function to get the current user identity from Flask's global context."""
    return g.get("user")

current_user: "TelegramIdentity" = LocalProxy(get_current_user) # type: ignore

__all__ = ["FlaskIdentifyMiddleware", "current_user", "get_current_user"]

logger = logging.getLogger(__name__)

class FlaskIdentifyMiddleware:
    """
    Flask-compatible middleware to validate user identity.
    """

    def __init__(self, app: Optional[Flask] = None, validators: Optional[List[IdentityValidator]] = None):
        self.validators = validators if validators is not None else []
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask):
        app.before_request(self._before_request_handler)

    def _before_request_handler(self):
        """
        Handler executed before each request to validate user identity.
        """
        # The validators are coroutines; Flask runs handlers synchronously.
        async_to_sync(self._validate_request)()

    async def _validate_request(self):
        for validator in self.validators:
            validator_name = validator.__class__.__name__
            logger.debug(f"Attempting Flask validation with {validator_name}.")
            try:
                user_identity = await validator.validate(request)
            except IdentityException as e:
                logger.warning(f"Validation error from {validator_name}: {e.detail}")
                abort(e.status_code, description=e.detail)
            if user_identity:
                logger.info(f"Flask validation succeeded with {validator_name} for {user_identity.id}.")
                g.user = user_identity
                return
            logger.debug(f"Flask validation skipped by {validator_name}.")

        logger.debug("Unauthenticated Flask request. Treating as public access.")
        g.user = None
