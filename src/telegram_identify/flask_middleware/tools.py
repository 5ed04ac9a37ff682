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
Flask decorators giving views access to the verified Telegram identity.
"""

import logging
from functools import wraps

from flask import abort, g

logger = logging.getLogger(__name__)


def flask_require_auth(f):
    """
    Flask decorator to require a verified Telegram user.

    If no user is found on `g.user`, it aborts with a 401.

    Usage:
        @app.route("/me")
        @flask_require_auth
        def me():
            return jsonify(id=g.user.id, name=g.user.display_name)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.get("user"):
            logger.warning("flask_require_auth: No user found, aborting 401.")
            abort(401, description="Not authenticated")
        return f(*args, **kwargs)
    return decorated_function
