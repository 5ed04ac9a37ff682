import logging
import os
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI

from telegram_identify.fastapi_middleware.fastapi_identify import IdentifyMiddleware
from telegram_identify.fastapi_middleware.tools import get_current_user, require_auth
from telegram_identify.shared.models import TelegramIdentity
from telegram_identify.shared.validators import LoginWidgetValidator

# The token BotFather gave you. The widget on your login page must be
# configured with the same bot and with data-auth-url pointing to /auth/telegram.
BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN", "")

app = FastAPI()

app.add_middleware(
    IdentifyMiddleware,
    validators=[
        # Accept callbacks up to 10 minutes old.
        LoginWidgetValidator(BOT_TOKEN, auth_ttl=600),
    ],
)


@app.get("/auth/telegram")
async def telegram_callback(user: TelegramIdentity = Depends(require_auth)):
    # Issue your own session here; the middleware only verifies the callback.
    return {"id": user.id, "name": user.display_name, "photo_url": user.photo_url}


@app.get("/")
async def public_endpoint(user: Optional[TelegramIdentity] = Depends(get_current_user)):
    return {"message": "This is a public endpoint", "user": user.id if user else None}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
