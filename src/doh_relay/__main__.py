"""Entry point for doh-relay."""
import asyncio
import sys

from .config import Settings
from .errors import ConfigError
from .server import main as server_main

__all__ = ['main']


def main():
    """Main entry point for the doh-relay console script."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        sys.exit(f"doh-relay: {e}")
    try:
        asyncio.run(server_main(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
