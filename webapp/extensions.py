"""
Flask extensions shared by the app and its blueprints
"""

import os

from flask import request
from flask_limiter import Limiter
from flask_wtf.csrf import CSRFProtect


def get_real_ip():
    """Get real client IP, handling reverse proxy"""
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.remote_addr


csrf = CSRFProtect()

limiter = Limiter(
    key_func=get_real_ip,
    storage_uri=os.getenv('RATELIMIT_STORAGE_URI', 'memory://'),
    default_limits=["1000 per day", "200 per hour"],
    strategy="fixed-window",
)
