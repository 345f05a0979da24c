"""Lifecycle registry for managing startup and shutdown ordering.

Startup hooks run in dependency order (``requires``), ties broken by
``startup_order``. Shutdown hooks run in the reverse order, and only for
hooks whose startup completed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any

logger = logging.getLogger(__name__)

Hook = Callable[..., Awaitable[None]]


class LifecycleHook:
    """A startup or shutdown hook with its ordering metadata."""

    def __init__(self, name: str, func: Hook, order: int, requires: list[str]) -> None:
        self.name = name
        self.func = func
        self.startup_order = order
        self.requires = requires
        self.started = False

    async def execute(self, **kwargs: Any) -> None:
        await self.func(**kwargs)
        self.started = True


class LifecycleRegistry:
    """Registry of application lifecycle hooks.

    A function whose name starts with ``shutdown`` (or ends with
    ``_shutdown``) is registered as the shutdown half of the named hook,
    anything else as the startup half.

    Example:
        registry = LifecycleRegistry()

        @registry.register(name="registration", startup_order=10, requires=["core"])
        async def startup_registration(app: FastAPI, **kwargs: object) -> None:
            app.state.registration = build_runtime()

        @registry.register(name="registration")
        async def shutdown_registration(app: FastAPI, **kwargs: object) -> None:
            await app.state.registration.stop()

        await registry.startup(app=app, **settings)
        await registry.shutdown(app=app, **settings)
    """

    def __init__(self) -> None:
        self._startup_hooks: dict[str, LifecycleHook] = {}
        self._shutdown_hooks: dict[str, LifecycleHook] = {}

    def register(
        self,
        name: str,
        startup_order: int = 50,
        requires: list[str] | None = None,
    ) -> Callable[[Hook], Hook]:
        """Register a lifecycle hook (decorator).

        Args:
            name: Hook name, shared by the startup and shutdown halves.
            startup_order: Startup position among hooks with satisfied
                dependencies (lower runs first).
            requires: Hooks that must have started before this one.
        """
        requires_list = requires or []

        def decorator(func: Hook) -> Hook:
            func_name = func.__name__.lower()
            is_shutdown = func_name.startswith("shutdown") or func_name.endswith("_shutdown")
            hooks = self._shutdown_hooks if is_shutdown else self._startup_hooks
            if name in hooks:
                kind = "Shutdown" if is_shutdown else "Startup"
                msg = f"{kind} hook '{name}' already registered"
                raise ValueError(msg)
            hooks[name] = LifecycleHook(
                name=name, func=func, order=startup_order, requires=requires_list,
            )
            return func

        return decorator

    def _resolve_startup_order(self) -> list[str]:
        """Order startup hooks so every hook follows its requirements.

        Raises:
            ValueError: Missing or circular dependency.
        """
        for name, hook in self._startup_hooks.items():
            for dep in hook.requires:
                if dep not in self._startup_hooks:
                    msg = f"Hook '{name}' requires '{dep}' but it's not registered"
                    raise ValueError(msg)

        ordered: list[str] = []
        remaining = set(self._startup_hooks)
        while remaining:
            available = sorted(
                (n for n in remaining if all(d in ordered for d in self._startup_hooks[n].requires)),
                key=lambda n: self._startup_hooks[n].startup_order,
            )
            if not available:
                msg = f"Circular dependency detected among: {', '.join(sorted(remaining))}"
                raise ValueError(msg)
            ordered.extend(available)
            remaining.difference_update(available)
        return ordered

    def _resolve_shutdown_order(self) -> list[str]:
        return [
            name
            for name in reversed(self._resolve_startup_order())
            if self._startup_hooks[name].started and name in self._shutdown_hooks
        ]

    async def startup(self, **kwargs: Any) -> None:
        """Execute all startup hooks in dependency order."""
        for name in self._resolve_startup_order():
            hook = self._startup_hooks[name]
            try:
                logger.debug("Starting %s...", name)
                await hook.execute(**kwargs)
                logger.debug("Started %s", name)
            except Exception as e:
                logger.error("Failed to start %s: %s", name, e, exc_info=True)
                raise

    async def shutdown(self, **kwargs: Any) -> None:
        """Execute shutdown hooks of started services in reverse order.

        A failing hook is logged and the remaining hooks still run.
        """
        for name in self._resolve_shutdown_order():
            hook = self._shutdown_hooks[name]
            try:
                logger.debug("Shutting down %s...", name)
                await hook.execute(**kwargs)
                self._startup_hooks[name].started = False
                logger.debug("Shut down %s", name)
            except Exception as e:
                logger.warning("Error shutting down %s: %s", name, e, exc_info=True)

    def clear(self) -> None:
        """Clear all registered hooks (mainly for testing)."""
        self._startup_hooks.clear()
        self._shutdown_hooks.clear()


lifespan_registry = LifecycleRegistry()

__all__ = ["LifecycleHook", "LifecycleRegistry", "lifespan_registry"]
