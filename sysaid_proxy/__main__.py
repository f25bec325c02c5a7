"""Run the proxy with uvicorn: ``python -m sysaid_proxy``."""

import uvicorn

from sysaid_proxy.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "sysaid_proxy.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
