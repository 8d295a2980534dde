"""
Agronomy configuration store.

Supplies the fertilizer catalog, the crop removal-rate table and the global
efficiency parameters as one immutable snapshot. Each piece is read from a
JSON file in the user data directory (``FERTIPLAN_DATA_DIR``, else
``~/.fertiplan``); pieces the user never saved fall back to the packaged
defaults, which are never written. A file that exists but is malformed is a
configuration error and is never silently replaced.
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass
from pathlib import Path
import json
import logging
import os

from pydantic import BaseModel, ValidationError

from fertiplan.schemas.fertilization_schemas import (
    AgronomyParametersSchema,
    FertilizerCatalogFile,
    FertilizerProductSchema,
    RemovalRateSchema,
    RemovalRatesFile,
)
from fertiplan.services.fertilization_models import (
    ConfigurationError,
    EfficiencyParameters,
    FertilizerProduct,
    RemovalRateTable,
)

logger = logging.getLogger(__name__)

PACKAGED_DATA_DIR = Path(__file__).parent.parent / "data"
DATA_DIR_ENV = "FERTIPLAN_DATA_DIR"
USER_DATA_DIRNAME = ".fertiplan"

FERTILIZERS_FILE = "fertilizers.json"
REMOVAL_RATES_FILE = "removal_rates.json"
PARAMETERS_FILE = "agronomy_params.json"


@dataclass(frozen=True)
class AgronomyConfig:
    """Read-only snapshot handed to each planning run."""
    fertilizers: Tuple[FertilizerProduct, ...]
    removal_rates: RemovalRateTable
    parameters: EfficiencyParameters


def build_catalog(entries: Sequence[FertilizerProductSchema]) -> Tuple[FertilizerProduct, ...]:
    """Convert catalog entries, rejecting duplicate product ids."""
    catalog: List[FertilizerProduct] = []
    seen = set()
    for entry in entries:
        if entry.id in seen:
            raise ConfigurationError(f"Duplicate fertilizer id '{entry.id}' in catalog")
        seen.add(entry.id)
        catalog.append(entry.to_product())
    return tuple(catalog)


def build_removal_rates(crops: Dict[str, RemovalRateSchema]) -> RemovalRateTable:
    return RemovalRateTable(rates={crop: rate.to_rate() for crop, rate in crops.items()})


def _read_json(path: Path, schema: type) -> BaseModel:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return schema.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid configuration file {path}: {e}")
        raise ConfigurationError(f"Invalid configuration file {path.name}: {e}") from e


class AgronomyConfigStore:
    """JSON-backed load/save/reset of the agronomy configuration."""

    def __init__(self, data_dir: Optional[Path] = None, defaults_dir: Path = PACKAGED_DATA_DIR):
        if data_dir is None:
            env_dir = os.environ.get(DATA_DIR_ENV)
            data_dir = Path(env_dir) if env_dir else Path.home() / USER_DATA_DIRNAME
        self.data_dir = Path(data_dir)
        self.defaults_dir = Path(defaults_dir)

    @property
    def writable(self) -> bool:
        return self.data_dir.resolve() != self.defaults_dir.resolve()

    def _resolve(self, filename: str) -> Path:
        user_path = self.data_dir / filename
        if user_path.exists():
            return user_path
        default_path = self.defaults_dir / filename
        if not default_path.exists():
            raise ConfigurationError(f"No configuration found for {filename}")
        logger.warning(f"{user_path} not found, using packaged defaults")
        return default_path

    def load_fertilizers(self) -> Tuple[FertilizerProduct, ...]:
        catalog_file = _read_json(self._resolve(FERTILIZERS_FILE), FertilizerCatalogFile)
        return build_catalog(catalog_file.fertilizers)

    def load_removal_rates(self) -> RemovalRateTable:
        rates_file = _read_json(self._resolve(REMOVAL_RATES_FILE), RemovalRatesFile)
        return build_removal_rates(rates_file.crops)

    def load_parameters(self) -> EfficiencyParameters:
        params = _read_json(self._resolve(PARAMETERS_FILE), AgronomyParametersSchema)
        return params.to_parameters()

    def load(self) -> AgronomyConfig:
        config = AgronomyConfig(
            fertilizers=self.load_fertilizers(),
            removal_rates=self.load_removal_rates(),
            parameters=self.load_parameters(),
        )
        logger.info(
            f"Loaded agronomy config from {self.data_dir}: {len(config.fertilizers)} fertilizers, "
            f"{len(config.removal_rates.crops)} crops"
        )
        return config

    def _write_json(self, filename: str, payload: Dict) -> Path:
        if not self.writable:
            raise ConfigurationError(f"Refusing to overwrite packaged defaults in {self.defaults_dir}")
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.data_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.info(f"Saved {path}")
        clear_agronomy_config_cache()
        return path

    def save_fertilizers(self, fertilizers: Sequence[FertilizerProduct]) -> Path:
        entries = [FertilizerProductSchema.from_product(f) for f in fertilizers]
        build_catalog(entries)
        return self._write_json(FERTILIZERS_FILE, {
            "fertilizers": [entry.model_dump(mode="json") for entry in entries]
        })

    def save_removal_rates(self, table: RemovalRateTable) -> Path:
        return self._write_json(REMOVAL_RATES_FILE, {
            "crops": {crop: {"n": rate.n, "p": rate.p, "k": rate.k} for crop, rate in table.rates.items()}
        })

    def save_parameters(self, params: EfficiencyParameters) -> Path:
        return self._write_json(
            PARAMETERS_FILE, AgronomyParametersSchema.from_parameters(params).model_dump(mode="json")
        )

    def reset(self) -> None:
        """Drop saved edits so the next load returns the packaged defaults."""
        if not self.writable:
            return
        for filename in (FERTILIZERS_FILE, REMOVAL_RATES_FILE, PARAMETERS_FILE):
            path = self.data_dir / filename
            if path.exists():
                path.unlink()
                logger.info(f"Removed {path}")
        clear_agronomy_config_cache()


_agronomy_config_cache: Optional[AgronomyConfig] = None


def clear_agronomy_config_cache():
    """Clear the cache to reload the agronomy configuration on next call."""
    global _agronomy_config_cache
    _agronomy_config_cache = None


def get_agronomy_config() -> AgronomyConfig:
    """Cached configuration snapshot from the default store."""
    global _agronomy_config_cache
    if _agronomy_config_cache is None:
        _agronomy_config_cache = AgronomyConfigStore().load()
    return _agronomy_config_cache
