"""Registry of entity models by name."""

from __future__ import annotations

from core.errors import KeystoneTransformError
from entity_models import (
    companies,
    company_metrics,
    counterparties,
    distributions,
    investment_nav,
    investments,
    investors,
)
from entity_models.base import EntityModel

_MODELS: dict[str, EntityModel] = {
    module.MODEL.name: module.MODEL
    for module in (
        distributions,
        investments,
        investment_nav,
        company_metrics,
        investors,
        counterparties,
        companies,
    )
}


def model_names() -> tuple[str, ...]:
    """Return registered model names in registration order."""
    return tuple(_MODELS)


def get_model(name: str) -> EntityModel:
    """Return the entity model registered under ``name``.

    Raises:
        KeystoneTransformError: If no model has that name.
    """
    model = _MODELS.get(name)
    if model is None:
        raise KeystoneTransformError(
            f"Unknown entity model '{name}'. Supported models: {', '.join(_MODELS)}."
        )
    return model
