"""
Blocking entry points for kopendata: the ``.sync`` decorator and ``*_sync`` functions.

This module provides synchronous versions of the async lookups for callers
that cannot use async/await (scripts, notebooks without a running loop).
Under the hood each call runs in its own event loop.

Usage:
    # Instead of this async code:
    async with FloodControlClient() as client:
        response = await get_water_info("대청댐", client=client)

    # Use this sync code:
    from kopendata.sync import get_water_info_sync
    response = get_water_info_sync("대청댐")
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union, get_args, get_origin

R = TypeVar("R")


class AsyncSyncBridge:
    """Runs async functions synchronously, creating a client when needed."""

    @staticmethod
    def run_async(
        async_fn: Callable[..., Awaitable[R]],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        client_class: Optional[type] = None,
    ) -> R:
        """Run an async function synchronously.

        Args:
            async_fn: Async function to run
            args: Positional arguments for the function
            kwargs: Keyword arguments for the function
            client_class: Client class to instantiate if no client is passed

        Returns:
            Result of running the async function

        Raises:
            RuntimeError: If called from within a running event loop
        """
        kwargs = dict(kwargs or {})

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "Cannot use sync version from within an existing asyncio event loop. "
                "Use the async version instead."
            )

        async def _call_and_cleanup() -> R:
            # Created inside the loop so the HTTP client binds to it
            temp_client = None
            if client_class and kwargs.get("client") is None:
                if "client" in inspect.signature(async_fn).parameters:
                    temp_client = client_class()
                    kwargs["client"] = temp_client
            try:
                return await async_fn(*args, **kwargs)
            finally:
                if temp_client is not None:
                    await temp_client.close()

        return asyncio.run(_call_and_cleanup())

    @staticmethod
    def extract_client_class(annotation: Any) -> Optional[type]:
        """Extract client class from a type annotation.

        Handles Optional, Union and direct type annotations.
        """
        if annotation is None or annotation is inspect.Parameter.empty:
            return None

        if get_origin(annotation) is Union:
            non_none_args = [arg for arg in get_args(annotation) if arg is not type(None)]
            if non_none_args and isinstance(non_none_args[0], type):
                return non_none_args[0]
            return None

        return annotation if isinstance(annotation, type) else None


def add_sync_version(async_fn: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
    """
    Attach a blocking ``.sync`` variant to an async lookup.

    When the lookup takes a ``client`` argument and the caller leaves it out,
    ``.sync`` opens a client of the annotated class for the duration of the
    call, e.g. ``get_water_info.sync("대청댐")``.
    """
    client_param = inspect.signature(async_fn).parameters.get("client")
    annotated_class = (
        AsyncSyncBridge.extract_client_class(client_param.annotation) if client_param else None
    )

    def sync_wrapper(*args: Any, **kwargs: Any) -> R:
        client_class = annotated_class if kwargs.get("client") is None else None
        return AsyncSyncBridge.run_async(
            async_fn, args=args, kwargs=kwargs, client_class=client_class
        )

    async_fn.sync = sync_wrapper  # type: ignore[attr-defined]
    return async_fn


def get_water_info_sync(
    query: str,
    client: Optional[Any] = None,
    include_trend: bool = False,
) -> Any:
    """Synchronous version of get_water_info.

    Args:
        query: Station name or free text, e.g. '대청댐' or '서울 강수량'
        client: FloodControlClient instance. If not provided, creates a temporary client
        include_trend: Attach the hourly trend of the resolved station

    Returns:
        IntegratedResponse
    """
    from .flood.client import FloodControlClient
    from .flood.convenience import get_water_info

    return AsyncSyncBridge.run_async(
        get_water_info,
        args=(query,),
        kwargs={"client": client, "include_trend": include_trend},
        client_class=FloodControlClient if client is None else None,
    )


def get_station_history_sync(
    kind: str,
    code: str,
    interval: str = "1H",
    client: Optional[Any] = None,
) -> Any:
    """Synchronous version of get_station_history."""
    from .flood.client import FloodControlClient
    from .flood.convenience import get_station_history

    return AsyncSyncBridge.run_async(
        get_station_history,
        args=(kind, code),
        kwargs={"interval": interval, "client": client},
        client_class=FloodControlClient if client is None else None,
    )


def get_real_estate_info_sync(
    query: str,
    year_month: Optional[str] = None,
    client: Optional[Any] = None,
) -> Any:
    """Synchronous version of get_real_estate_info.

    Args:
        query: Region name or 5-digit district code, e.g. '강남구'
        year_month: Deal month as YYYYMM, defaults to the current month
        client: RealEstateClient instance. If not provided, creates a temporary client

    Returns:
        RealEstateSummary
    """
    from .realestate.client import RealEstateClient
    from .realestate.convenience import get_real_estate_info

    return AsyncSyncBridge.run_async(
        get_real_estate_info,
        args=(query,),
        kwargs={"year_month": year_month, "client": client},
        client_class=RealEstateClient if client is None else None,
    )
