"""Router for the Spotify OAuth hand-off."""

from __future__ import annotations

import json
from html import escape
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from ..config import get_settings
from ..services.spotify_auth import AuthSessionManager, Authorized, Authorizing, Failed

router = APIRouter()


class SpotifyAuthStatusResponse(BaseModel):
    """Authorization status for Spotify."""

    authorized: bool
    state: str
    error: Optional[str] = None


class SpotifyAuthAuthorizeResponse(BaseModel):
    """Response payload containing the consent screen URL."""

    auth_url: str
    state: str


def get_auth_manager(request: Request) -> AuthSessionManager:
    return request.app.state.auth_manager


def _status(manager: AuthSessionManager) -> SpotifyAuthStatusResponse:
    state = manager.state
    return SpotifyAuthStatusResponse(
        authorized=manager.is_authorized,
        state=state.name,
        error=str(state.error) if isinstance(state, Failed) else None,
    )


def _resolve_frontend_origin() -> str:
    settings = get_settings()
    parsed = urlparse(str(settings.frontend_url))
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return "*"


def _render_callback_page(*, success: bool, message: str) -> HTMLResponse:
    status = "success" if success else "error"
    payload_json = json.dumps(
        {"source": "spotify-auth", "status": status, "message": message}
    )
    target_origin = json.dumps(_resolve_frontend_origin())
    title = (
        "Spotify authorization complete" if success else "Spotify authorization failed"
    )

    html = f"""
    <!DOCTYPE html>
    <html lang=\"en\">
      <head>
        <meta charset=\"utf-8\" />
        <title>{escape(title)}</title>
        <style>
          body {{
            margin: 0;
            min-height: 100vh;
            display: flex;
            align-items: center;
            justify-content: center;
            font-family: system-ui, -apple-system, \"Segoe UI\", sans-serif;
            background: #0f172a;
            color: #f8fafc;
          }}
          .card {{
            background: rgba(15, 23, 42, 0.92);
            border: 1px solid rgba(148, 163, 184, 0.2);
            border-radius: 16px;
            padding: 32px 36px;
            max-width: 420px;
            text-align: center;
          }}
          .status-success {{ color: #1ed760; }}
          .status-error {{ color: #f87171; }}
        </style>
      </head>
      <body>
        <div class=\"card\">
          <h1 class=\"status-{status}\">{escape(title)}</h1>
          <p>{escape(message)}</p>
          <button type=\"button\" onclick=\"window.close()\">Close window</button>
        </div>
        <script>
          (function() {{
            const payload = {payload_json};
            try {{
              if (window.opener && !window.opener.closed) {{
                window.opener.postMessage(payload, {target_origin});
              }}
            }} catch (err) {{
              console.warn('Failed to notify parent window about Spotify auth result.', err);
            }}
          }})();
        </script>
      </body>
    </html>
    """

    return HTMLResponse(content=html, status_code=200 if success else 400)


@router.get("/status", response_model=SpotifyAuthStatusResponse)
async def check_auth_status(
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> SpotifyAuthStatusResponse:
    """Return the current authorization state."""

    return _status(manager)


@router.post("/authorize", response_model=SpotifyAuthAuthorizeResponse)
async def start_authorization(
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> SpotifyAuthAuthorizeResponse:
    """Start the consent flow and return the Spotify authorize URL."""

    manager.start_authorization()
    state = manager.state

    if isinstance(state, Failed):
        raise HTTPException(status_code=400, detail=str(state.error))
    if not isinstance(state, Authorizing) or not manager.pending_authorization_url:
        raise HTTPException(
            status_code=409, detail="Spotify authorization could not be started"
        )

    return SpotifyAuthAuthorizeResponse(
        auth_url=manager.pending_authorization_url, state=state.name
    )


@router.get("/callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> HTMLResponse:
    """Handle the OAuth redirect back from Spotify."""

    redirect_uri = get_settings().spotify_redirect_uri
    query = request.url.query
    callback_url = f"{redirect_uri}?{query}" if query else redirect_uri

    handled = await manager.handle_callback(callback_url)
    state = manager.state

    if isinstance(state, Authorized):
        return _render_callback_page(
            success=True,
            message="Spotify is connected. You can close this window.",
        )
    if handled and isinstance(state, Failed):
        message = f"Failed to complete authorization: {state.error}"
    else:
        message = "Unexpected Spotify redirect"
    return _render_callback_page(success=False, message=message)


@router.post("/renew", response_model=SpotifyAuthStatusResponse)
async def renew_session(
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> SpotifyAuthStatusResponse:
    """Refresh the live session with its refresh token."""

    if manager.current_session is None:
        raise HTTPException(status_code=401, detail="No Spotify session to renew")
    await manager.renew_session()
    return _status(manager)


@router.post("/sign-out", response_model=SpotifyAuthStatusResponse)
async def sign_out(
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> SpotifyAuthStatusResponse:
    """Forget the stored token and end the session."""

    manager.sign_out()
    return _status(manager)


__all__ = ["router"]
