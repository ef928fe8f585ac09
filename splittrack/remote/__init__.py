"""Transport collaborators for the remote assignment and analytics services."""

import httpx
from pydantic import ValidationError

# Failures that put a visitor into offline mode or defer a call to the job queue
SERVER_ERRORS = (httpx.HTTPError, ValidationError)

__all__ = ["SERVER_ERRORS"]
