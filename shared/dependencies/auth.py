"""X-API-Key check for the document routes."""

import secrets

from fastapi import HTTPException, Request

API_KEY_HEADER = "X-API-Key"


async def verify_api_key(request: Request) -> None:
    """Compare the X-API-Key header with APP_API_KEY in constant time.

    End users sign in to the web app; this key only identifies the web
    app's backend as a caller.

    Raises:
        HTTPException: 401 if the header is absent or does not match.
    """
    expected = request.app.state.config.get_string_val("APP_API_KEY")
    supplied = request.headers.get(API_KEY_HEADER, "")
    if not supplied or not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail=f"Missing or invalid {API_KEY_HEADER} header.")
