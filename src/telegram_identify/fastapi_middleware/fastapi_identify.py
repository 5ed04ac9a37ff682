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
from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from telegram_identify.shared.models import TelegramIdentity
from telegram_identify.shared.validators import IdentityValidator
from telegram_identify.shared.widget_utils import IdentityException

logger = logging.getLogger(__name__)

class IdentifyMiddleware(BaseHTTPMiddleware):
    """
    Middleware to validate user identity in a FastAPI application.
    Validators run in order; the first identity found is stored in
    `request.state.user`. No session or cookie is written.
    """

    def __init__(self, app, validators: List[IdentityValidator]):
        super().__init__(app)
        self.validators = validators

    async def dispatch(self, request: Request, call_next):
        for validator in self.validators:
            validator_name = validator.__class__.__name__
            logger.debug(f"Attempting validation with {validator_name}.")
            try:
                user_identity: Optional[TelegramIdentity] = await validator.validate(request)
                if user_identity:
                    logger.info(f"Validation succeeded with {validator_name} for {user_identity.id}.")
                    request.state.user = user_identity
                    return await call_next(request)
                logger.debug(f"Validation skipped by {validator_name}.")
            except IdentityException as e:
                logger.warning(f"IdentityException from {validator_name}: {e.detail}")
                # Exceptions raised inside BaseHTTPMiddleware bypass FastAPI's handlers.
                return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        logger.debug("Unauthenticated request. Treating as public access.")
        request.state.user = None
        return await call_next(request)
