"""API router package.

This package contains the HTTP route modules for the value store service.

Most code should import the composed router via:

    from valuestore.routes import router

The actual composition lives in `valuestore/routes/api_router.py`.
"""

from .api_router import router
