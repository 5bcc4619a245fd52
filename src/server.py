"""Protean Engine runner for the ordering domain.

Starts the Engine that processes events asynchronously in production:
- OutboxProcessor: polls the outbox table and publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams and invokes projectors

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from protean.server.engine import Engine

from ordering.utils.logging import configure_logging


def _get_domain():
    from ordering.domain import ordering

    ordering.init()
    return ordering


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
