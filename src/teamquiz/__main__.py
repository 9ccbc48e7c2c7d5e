"""Serve the API with uvicorn: ``python -m teamquiz``."""

import os

import uvicorn

from teamquiz.main import app


def main() -> None:
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)  # noqa: S104


if __name__ == "__main__":
    main()
