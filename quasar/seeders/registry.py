"""
Ordered seeder registry and runner
"""
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import seeders_run_total
from quasar.seeders.access import PermissionsSeeder, RolesSeeder
from quasar.seeders.base import BaseSeeder, SeedResult
from quasar.seeders.cms import ComponentConfigsSeeder, SectionsSeeder
from quasar.seeders.reference import (CountriesSeeder, DeliveryMethodsSeeder,
                                      PaymentMethodsSeeder, WarehousesSeeder)

logger = LoggingConfig.get_logger(__name__)

# Declared order is run order: roles before the permissions linked to them
SEEDERS: List[BaseSeeder] = [
    RolesSeeder(),
    PermissionsSeeder(),
    CountriesSeeder(),
    ComponentConfigsSeeder(),
    SectionsSeeder(),
    PaymentMethodsSeeder(),
    DeliveryMethodsSeeder(),
    WarehousesSeeder(),
]


def _select(names: Optional[Sequence[str]]) -> List[BaseSeeder]:
    if not names:
        return list(SEEDERS)
    known = {seeder.name for seeder in SEEDERS}
    unknown = [name for name in names if name not in known]
    if unknown:
        raise AppError.validation(ModuleCode.SYSTEM, f"Unknown seeder(s): {', '.join(unknown)}",
                                  OperationCode.PROCESS, unknown=unknown)
    # Keep declared order whatever order the names came in
    return [seeder for seeder in SEEDERS if seeder.name in names]


def run_seeders(db: Session, names: Optional[Sequence[str]] = None) -> Dict[str, SeedResult]:
    """
    Run seeders in declared order, committing after each one

    A failing seeder is rolled back and its exception re-raised; the
    seeders before it stay committed.
    """
    results: Dict[str, SeedResult] = {}
    for seeder in _select(names):
        logger.info(f"Running seeder {seeder.name}")
        try:
            result = seeder.run(db)
            db.commit()
        except Exception as e:
            db.rollback()
            seeders_run_total.labels(seeder=seeder.name, status="failure").inc()
            logger.error(f"Seeder {seeder.name} failed: {e}", exc_info=True)
            raise
        seeders_run_total.labels(seeder=seeder.name, status="success").inc()
        logger.info(f"Seeder {seeder.name} finished: {result}")
        results[seeder.name] = result
    return results
