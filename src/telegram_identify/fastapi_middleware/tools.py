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
FastAPI dependencies giving endpoints access to the verified Telegram identity.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from telegram_identify.shared.models import TelegramIdentity

logger = logging.getLogger(__name__)


def get_current_user(request: Request) -> Optional[TelegramIdentity]:
    """
    FastAPI dependency to get the current user.

    Returns Optional[TelegramIdentity], so it's suitable for endpoints
    that are public but have optional authenticated features.

    Usage:
        @app.get("/hello")
        async def hello(user: Optional[TelegramIdentity] = Depends(get_current_user)):
            if user:
                return {"message": f"Hello, {user.display_name}"}
            return {"message": "Hello, guest"}
    """
    return getattr(request.state, "user", None)


def require_auth(
    user: Optional[TelegramIdentity] = Depends(get_current_user),
) -> TelegramIdentity:
    """
    FastAPI dependency to require a verified Telegram user.

    Raises a 401 HTTPException when no validator produced an identity.
    """
    if not user:
        logger.warning("require_auth: No user found, raising 401.")
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
