"""Run the API with uvicorn: ``python -m ledger_api [--host H] [--port P]``."""

import argparse

import uvicorn

from ledger_api.app import create_app
from ledger_config import get_active_config


def main() -> None:
    parser = argparse.ArgumentParser(description="Ledger posting & period-close API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", default=None, help="Path to a YAML configuration set")
    args = parser.parse_args()

    uvicorn.run(create_app(get_active_config(args.config)), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
