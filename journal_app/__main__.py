from __future__ import annotations

import uvicorn

from journal_app.core.config import ConfigManager


def main() -> None:
    config = ConfigManager.get().config
    uvicorn.run("journal_app.main:app", host=config.host, port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
