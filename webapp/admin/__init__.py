"""Admin JSON API Blueprint"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

# Import routes after blueprint is defined to avoid circular imports
from . import routes, products, posts, subscribers, api

__all__ = ['admin_bp']
