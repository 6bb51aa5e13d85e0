# src/ratelock/api/__main__.py
from __future__ import annotations

import uvicorn

from ratelock.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so RATELOCK_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from ratelock.api.app import create_app
    from ratelock.runtime.ledger_config import load_ledger_config
    from ratelock.structured_logging import configure_structured_logging

    cfg = load_ledger_config()
    configure_structured_logging(cfg.log_level)

    uvicorn.run(create_app(config=cfg), host=cfg.api_host, port=cfg.api_port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
