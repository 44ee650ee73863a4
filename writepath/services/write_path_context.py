"""Write-Path Context — the composition root's single instance of every coordinator.

Invariants:
    - Exactly one registry per context; every service in the context shares it
    - Nothing here is module-global: callers construct a context and pass it down

Design Decisions:
    - Explicitly constructed, dependency-injected object instead of a global
      navigation/registry singleton
"""

from dataclasses import dataclass

from writepath.config import Settings, get_settings
from writepath.core.mutation_registry import MutationRegistry
from writepath.core.repository_protocols import (
    CacheBackend, NavigationRuntime, RecordStore,
)
from writepath.services.audit_log_writer import AuditLogWriter
from writepath.services.cache_client import CacheClient
from writepath.services.data_sync import DataSync
from writepath.services.mutation_coordinator import MutationCoordinator
from writepath.services.navigation_guard import NavigationGuard


@dataclass
class WritePathContext:
    registry: MutationRegistry
    cache: CacheClient
    sync: DataSync
    navigation: NavigationGuard
    audit: AuditLogWriter
    coordinator: MutationCoordinator


def build_write_path_context(
    cache_backend: CacheBackend,
    navigation_runtime: NavigationRuntime,
    record_store: RecordStore,
    settings: Settings | None = None,
) -> WritePathContext:
    settings = settings or get_settings()
    registry = MutationRegistry()
    cache = CacheClient(cache_backend)
    sync = DataSync(cache)
    navigation = NavigationGuard(
        registry, cache, navigation_runtime,
        flush_timeout_seconds=settings.navigation_flush_timeout_seconds,
        history_limit=settings.navigation_history_limit,
    )
    audit = AuditLogWriter(record_store)
    coordinator = MutationCoordinator(registry, sync, audit, navigation)
    return WritePathContext(
        registry=registry,
        cache=cache,
        sync=sync,
        navigation=navigation,
        audit=audit,
        coordinator=coordinator,
    )
