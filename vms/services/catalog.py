import logging
from pydantic import ValidationError
from typing import List

from vms.errors import ApiError, CatalogUnavailable, SessionExpired
from vms.models.training import TrainingModule
from vms.services.api_client import TrainingAPI

logger = logging.getLogger(__name__)

def _is_active(raw) -> bool:
    """Modules without a truthy `isActive` never reach validation."""
    if not isinstance(raw, dict):
        return True
    return bool(raw.get("isActive", raw.get("is_active", False)))

def load_catalog(api: TrainingAPI) -> List[TrainingModule]:
    """Load the ordered list of active training modules from the backend"""
    try:
        raw_modules = api.get_all_trainings()
    except SessionExpired:
        raise
    except ApiError as e:
        logger.error(f"Error loading training modules: {str(e)}")
        raise CatalogUnavailable(f"Failed to load training modules: {str(e)}") from e

    if not isinstance(raw_modules, list):
        logger.error(f"Training list has unexpected type {type(raw_modules).__name__}")
        raise CatalogUnavailable("Failed to load training modules: unexpected response shape")

    modules = []
    for idx, raw in enumerate(raw_modules):
        if not _is_active(raw):
            continue
        try:
            modules.append(TrainingModule.model_validate(raw))
        except ValidationError as e:
            logger.error(f"Training module #{idx} does not match the schema: {str(e)}")
            raise CatalogUnavailable(f"Training module #{idx} is malformed") from e

    return modules

def load_module(api: TrainingAPI, training_id: str) -> TrainingModule:
    """Load a single training module by id"""
    try:
        raw = api.get_training_by_id(training_id)
        return TrainingModule.model_validate(raw)
    except SessionExpired:
        raise
    except ApiError as e:
        logger.error(f"Error loading training {training_id}: {str(e)}")
        raise CatalogUnavailable(f"Failed to load training {training_id}: {str(e)}") from e
    except ValidationError as e:
        logger.error(f"Training {training_id} does not match the schema: {str(e)}")
        raise CatalogUnavailable(f"Training {training_id} is malformed") from e
