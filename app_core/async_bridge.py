from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Coroutine


def run_async(coro: Coroutine) -> Any:
    """
    Run an async coroutine from synchronous code (LangGraph nodes, resolvers).
    Handles nested event loops (FastAPI sync endpoints run in a worker thread,
    but pytest-asyncio and notebooks may already own a loop).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running event loop — safe to use asyncio.run()
        return asyncio.run(coro)

    # Already inside a running event loop — delegate to a new thread
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(asyncio.run, coro)
        return future.result()
