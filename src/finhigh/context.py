"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.store import LedgerStore
from .services.catalog import seed_categories
from .services.dashboard import DashboardProjector
from .services.locks import AccountLocks
from .services.provisioning import AccountProvisioner
from .services.reconcile import Reconciler
from .services.recorder import TransactionRecorder


@dataclass
class LedgerContext:
    """Engine, store and the services built on top of them."""

    config: BaseConfig
    engine: Engine
    store: LedgerStore
    locks: AccountLocks
    provisioner: AccountProvisioner
    recorder: TransactionRecorder
    projector: DashboardProjector
    reconciler: Reconciler

    def close(self) -> None:
        self.engine.dispose()


def create_ledger_context(
    config: Optional[BaseConfig] = None, *, seed_catalog: bool = True
) -> LedgerContext:
    """Create the engine, make sure the schema and catalog exist, and wire services."""

    if config is None:
        config = BaseConfig()

    engine = bootstrap_database(config)
    store = LedgerStore(engine)
    if seed_catalog:
        seed_categories(store)

    # One lock registry shared by every writer in this process
    locks = AccountLocks(timeout=config.LOCK_TIMEOUT)

    return LedgerContext(
        config=config,
        engine=engine,
        store=store,
        locks=locks,
        provisioner=AccountProvisioner(
            store, locks, carve_out=config.SAVINGS_CARVE_OUT, max_retries=config.MAX_RETRIES
        ),
        recorder=TransactionRecorder(store, locks, max_retries=config.MAX_RETRIES),
        projector=DashboardProjector(store, recent_limit=config.RECENT_LIMIT),
        reconciler=Reconciler(
            store, locks, carve_out=config.SAVINGS_CARVE_OUT, max_retries=config.MAX_RETRIES
        ),
    )
