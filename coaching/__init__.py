"""Weekly coaching scheduler core.

Modules:
- config: load and validate configuration (YAML)
- errors: input validation errors shared by all layers
- domain: value objects, SQLAlchemy models and repositories
- services: week clock, submission status, backfill, aggregation, scoring
- engine: need-score sequencer and orchestration over the database
- io: CSV import/export helpers
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
]
