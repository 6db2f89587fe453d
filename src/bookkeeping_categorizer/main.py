import os

import uvicorn

from bookkeeping_categorizer.core import settings


def main() -> None:
    host = os.getenv("HOST", "127.0.0.1")
    port = settings.get_env_int("PORT", settings.DEFAULT_PORT, min_value=1)
    # Logging is configured by create_app; keep uvicorn from replacing it.
    uvicorn.run("bookkeeping_categorizer.app:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
