"""
apps.console.context
~~~~~~~~~~~~~~~~~~~~
The explicit application context handed to every console session.

Collaborators and the shared query cache travel in a :class:`ConsoleContext`
instead of living in module-level singletons.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .services.clients import (
    ConfigStore,
    GenerationClient,
    HttpConfigStore,
    HttpGenerationClient,
    IdentityProvider,
    ServiceConfigStore,
    ServiceGenerationClient,
    StaticIdentityProvider,
)
from .services.edit_buffer import DEFAULT_DEBOUNCE_SECONDS
from .services.query_cache import QueryCache
from .services.tabs import DEFAULT_TAB_ROOT

BACKEND_LOCAL = "local"
BACKEND_HTTP = "http"


@dataclass
class ConsoleContext:
    store: ConfigStore
    generation: GenerationClient
    identity: IdentityProvider
    cache: QueryCache = field(default_factory=QueryCache)
    tab_root: str = DEFAULT_TAB_ROOT
    edit_debounce: float = DEFAULT_DEBOUNCE_SECONDS
    job_workers: int = 4


def build_console_context(
    *,
    identity: IdentityProvider | None = None,
    backend: str | None = None,
) -> ConsoleContext:
    """
    Build a context from the ``CONSOLE_*`` settings.

    ``CONSOLE_BACKEND = "local"`` talks to this process's services;
    ``"http"`` talks to ``CONSOLE_API_BASE_URL``.

    Raises:
        django.core.exceptions.ImproperlyConfigured: Unknown backend.
    """
    backend = backend or getattr(settings, "CONSOLE_BACKEND", BACKEND_LOCAL)

    if backend == BACKEND_LOCAL:
        store = ServiceConfigStore()
        generation = ServiceGenerationClient()
    elif backend == BACKEND_HTTP:
        base_url = settings.CONSOLE_API_BASE_URL
        timeout = settings.CONSOLE_API_TIMEOUT
        store = HttpConfigStore(base_url, timeout=timeout)
        generation = HttpGenerationClient(base_url, timeout=timeout)
    else:
        raise ImproperlyConfigured(
            f"CONSOLE_BACKEND must be '{BACKEND_LOCAL}' or '{BACKEND_HTTP}', got '{backend}'."
        )

    return ConsoleContext(
        store=store,
        generation=generation,
        identity=identity if identity is not None else StaticIdentityProvider(),
        cache=QueryCache(),
        tab_root=getattr(settings, "CONSOLE_TAB_ROOT", DEFAULT_TAB_ROOT),
        edit_debounce=getattr(settings, "CONSOLE_EDIT_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS),
        job_workers=getattr(settings, "CONSOLE_JOB_WORKERS", 4),
    )
