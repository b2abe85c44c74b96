"""
Table-initialization seeders
"""
from quasar.seeders.base import BaseSeeder, SeedResult  # noqa: F401
from quasar.seeders.registry import SEEDERS, run_seeders  # noqa: F401
