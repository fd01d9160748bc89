"""Schema management for protean providers backed by an RDBMS.

Protean's SQLAlchemy provider only knows about a model once its repository
DAO has been touched, so every aggregate and entity routed to the provider
is resolved before ``create_all``.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _rdbms_providers(domain: Domain):
    for name, provider in domain.providers.items():
        if provider.conn_info["provider"] in RDBMS_PROVIDERS:
            yield name, provider


def _register_models(domain: Domain, provider_name: str) -> None:
    records = [*domain.registry.aggregates.values(), *domain.registry.entities.values()]
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every RDBMS provider of the domain."""
    with domain.domain_context():
        for name, provider in _rdbms_providers(domain):
            _register_models(domain, name)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Provider schema created", domain=domain.name, provider=name)


def drop_db(domain: Domain) -> None:
    """Drop tables for every RDBMS provider of the domain."""
    with domain.domain_context():
        for name, provider in _rdbms_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("Provider schema dropped", domain=domain.name, provider=name)
