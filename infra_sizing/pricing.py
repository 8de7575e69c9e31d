"""Default cloud rate tables and loading of rate overrides from disk.

Rates are list prices in USD per hour (compute, load balancers, NAT) or per GB
month (storage). A region's compute and storage rates are the provider's base
rates times a regional multiplier; egress, load balancer, NAT and managed
control plane fees are flat across regions.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict
from typing import Optional
from typing import Union

from pydantic import ValidationError

from infra_sizing.errors import InvalidInput
from infra_sizing.errors import UnknownCatalogKey
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ComputeRates
from infra_sizing.interface import NetworkRates
from infra_sizing.interface import PricingModel
from infra_sizing.interface import StorageRates

logger = logging.getLogger(__name__)

DEFAULT_REGIONS: Dict[CloudProvider, str] = {
    CloudProvider.aws: "us-east-1",
    CloudProvider.azure: "eastus",
    CloudProvider.gcp: "us-central1",
}

BASE_RATES: Dict[CloudProvider, Dict[str, float]] = {
    CloudProvider.aws: {
        "cpu_per_hour": 0.048,
        "ram_gb_per_hour": 0.006,
        "managed_control_plane_per_hour": 0.10,
        "ssd_per_gb_month": 0.08,
        "registry_per_gb_month": 0.10,
        "egress_per_gb": 0.09,
        "load_balancer_per_hour": 0.0225,
        "nat_gateway_per_hour": 0.045,
    },
    CloudProvider.azure: {
        "cpu_per_hour": 0.048,
        "ram_gb_per_hour": 0.006,
        "managed_control_plane_per_hour": 0.0,
        "ssd_per_gb_month": 0.075,
        "registry_per_gb_month": 0.10,
        "egress_per_gb": 0.087,
        "load_balancer_per_hour": 0.025,
        "nat_gateway_per_hour": 0.045,
    },
    CloudProvider.gcp: {
        "cpu_per_hour": 0.0335,
        "ram_gb_per_hour": 0.0045,
        "managed_control_plane_per_hour": 0.10,
        "ssd_per_gb_month": 0.17,
        "registry_per_gb_month": 0.10,
        "egress_per_gb": 0.12,
        "load_balancer_per_hour": 0.025,
        "nat_gateway_per_hour": 0.045,
    },
}

REGIONAL_MULTIPLIERS: Dict[CloudProvider, Dict[str, float]] = {
    CloudProvider.aws: {
        "us-west-1": 1.1,
        "eu-west-1": 1.05,
        "eu-central-1": 1.05,
        "eu-west-2": 1.08,
        "eu-west-3": 1.08,
        "ap-southeast-1": 1.1,
        "ap-southeast-2": 1.1,
        "ap-northeast-1": 1.15,
        "ap-south-1": 0.95,
        "me-south-1": 1.2,
        "me-central-1": 1.2,
        "sa-east-1": 1.25,
    },
    CloudProvider.azure: {
        "westus": 1.05,
        "westus3": 1.05,
        "westeurope": 1.05,
        "northeurope": 1.05,
        "uksouth": 1.08,
        "ukwest": 1.08,
        "germanywestcentral": 1.1,
        "southeastasia": 1.1,
        "eastasia": 1.1,
        "japaneast": 1.15,
        "australiaeast": 1.12,
        "centralindia": 0.95,
        "uaenorth": 1.2,
        "brazilsouth": 1.25,
    },
    CloudProvider.gcp: {
        "us-east4": 1.05,
        "us-west2": 1.05,
        "us-west3": 1.05,
        "us-west4": 1.05,
        "europe-west1": 1.05,
        "europe-west4": 1.05,
        "europe-west2": 1.1,
        "europe-west3": 1.1,
        "asia-southeast1": 1.1,
        "asia-east1": 1.1,
        "asia-northeast1": 1.2,
        "australia-southeast1": 1.15,
        "asia-south1": 0.95,
        "me-west1": 1.25,
        "southamerica-east1": 1.3,
    },
}


def regional_multiplier(provider: CloudProvider, region: str) -> float:
    return REGIONAL_MULTIPLIERS.get(provider, {}).get(region, 1.0)


def default_pricing(
    provider: Union[str, CloudProvider] = CloudProvider.aws,
    region: Optional[str] = None,
) -> PricingModel:
    """List price table of a provider, scaled for ``region``"""
    try:
        key = CloudProvider(str(provider).lower())
        rates = BASE_RATES[key]
    except (ValueError, KeyError) as exc:
        raise UnknownCatalogKey("provider", provider, BASE_RATES.keys()) from exc

    region = region or DEFAULT_REGIONS[key]
    multiplier = regional_multiplier(key, region)
    return PricingModel(
        provider=key,
        region=region,
        source=f"{key.value} list prices",
        compute=ComputeRates(
            cpu_per_hour=rates["cpu_per_hour"] * multiplier,
            ram_gb_per_hour=rates["ram_gb_per_hour"] * multiplier,
            managed_control_plane_per_hour=rates["managed_control_plane_per_hour"],
        ),
        storage=StorageRates(
            ssd_per_gb_month=rates["ssd_per_gb_month"] * multiplier,
            registry_per_gb_month=rates["registry_per_gb_month"] * multiplier,
        ),
        network=NetworkRates(
            egress_per_gb=rates["egress_per_gb"],
            load_balancer_per_hour=rates["load_balancer_per_hour"],
            nat_gateway_per_hour=rates["nat_gateway_per_hour"],
        ),
    )


def load_pricing_from_disk(
    path: Union[Path, str, None] = os.environ.get("INFRA_SIZING_PRICING"),
) -> Optional[PricingModel]:
    """Read a ``PricingModel`` from a JSON file, ``None`` when no path is set"""
    if path is None:
        return None

    logger.info("Loading pricing from: %s", path)
    try:
        with open(path, encoding="utf-8") as fd:
            return PricingModel(**json.load(fd))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise InvalidInput(f"Could not load pricing from {path}: {exc}") from exc
