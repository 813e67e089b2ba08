"""Protean Engine runner for the ordering domain.

In production, events are processed asynchronously: the Engine consumes the
Order and Notification event streams and runs the notification, analytics
and dispatch handlers outside the request that committed the change.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from protean.server.engine import Engine


def _get_domain():
    from ordering.config import CheckoutSettings, set_settings
    from ordering.domain import ordering

    ordering.init()
    # Retry links in payment failure emails come from these settings
    set_settings(CheckoutSettings.from_env())
    return ordering


async def run():
    engine = Engine(_get_domain())
    await engine.run()


def main():
    asyncio.run(run())


if __name__ == "__main__":
    main()
