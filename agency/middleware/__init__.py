"""HTTP middleware. Applied in agency.main."""

from agency.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
