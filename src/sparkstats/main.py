"""CLI entrypoint for running the FastAPI app with uvicorn."""

from __future__ import annotations

import uvicorn


def main() -> None:
    """Run the ASGI server.

    Port 8888 matches the default Spotify redirect URI.
    """

    uvicorn.run(
        "sparkstats.app:create_app",
        factory=True,
        host="127.0.0.1",
        port=8888,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
