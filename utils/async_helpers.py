"""Async-to-sync bridge for Streamlit script runs."""

import asyncio


def run_async(coro):
    """Run a coroutine on a fresh event loop, cancelling whatever it left pending."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        asyncio.set_event_loop(None)
        loop.close()
