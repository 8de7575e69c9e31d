"""Role based VM fleet sizing.

Each role instance is shaped from a base size class, made bigger on RAM for
memory hungry runtimes and inflated by the system overhead. The HA pattern of
the environment then multiplies the instance count, always rounding up to
whole VMs. Load balancer VMs and extra storage are added per environment.
"""

import logging
import math
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import Tuple

from infra_sizing.enum_utils import describe
from infra_sizing.errors import InvalidInput
from infra_sizing.errors import UnknownCatalogKey
from infra_sizing.interface import AppTier
from infra_sizing.interface import Environment
from infra_sizing.interface import HAPattern
from infra_sizing.interface import LoadBalancerOption
from infra_sizing.interface import ServerRole
from infra_sizing.interface import TechnologyProfile
from infra_sizing.interface import VMEnvironmentConfig
from infra_sizing.interface import VMEnvironmentSizing
from infra_sizing.interface import VMRoleConfig
from infra_sizing.interface import VMRoleSizing
from infra_sizing.interface import VMRoleTemplate
from infra_sizing.interface import VMSizingResult
from infra_sizing.interface import VMWorkload
from infra_sizing.models.common import inflate

logger = logging.getLogger(__name__)


def _by_tier(*specs: Tuple[int, int]) -> Dict[AppTier, Tuple[int, int]]:
    return dict(zip(AppTier, specs))


_GENERAL = _by_tier((2, 4), (4, 8), (8, 16), (16, 32))
_MEMORY = _by_tier((4, 16), (8, 32), (16, 64), (32, 128))

# (cpu, ram) of one instance per role and size class
ROLE_SPECS: Dict[ServerRole, Dict[AppTier, Tuple[int, int]]] = {
    ServerRole.web: _GENERAL,
    ServerRole.app: _GENERAL,
    ServerRole.database: _MEMORY,
    ServerRole.cache: _by_tier((2, 8), (4, 16), (8, 32), (16, 64)),
    ServerRole.message_queue: _GENERAL,
    ServerRole.search: _MEMORY,
    ServerRole.storage: _GENERAL,
    ServerRole.monitoring: _GENERAL,
    ServerRole.bastion: _by_tier((2, 4), (2, 4), (2, 4), (2, 4)),
}

HA_MULTIPLIERS: Dict[HAPattern, float] = {
    HAPattern.none: 1.0,
    HAPattern.active_active: 2.0,
    HAPattern.active_passive: 2.0,
    HAPattern.n_plus_1: 1.5,
    HAPattern.n_plus_2: 1.67,
}

# (vms, cpu per vm, ram per vm)
LOAD_BALANCERS: Dict[LoadBalancerOption, Tuple[int, int, int]] = {
    LoadBalancerOption.none: (0, 0, 0),
    LoadBalancerOption.single: (1, 2, 4),
    LoadBalancerOption.ha_pair: (2, 2, 4),
    LoadBalancerOption.cloud_lb: (0, 0, 0),
}

ENVIRONMENT_NAMES: Dict[Environment, str] = {
    Environment.dr: "Disaster Recovery",
}


def role_specs(
    role: ServerRole, size: AppTier, technology: TechnologyProfile
) -> Tuple[int, int]:
    try:
        cpu, ram = ROLE_SPECS[role][size]
    except KeyError as exc:
        raise UnknownCatalogKey("role", f"{role}/{size}", ROLE_SPECS.keys()) from exc
    return cpu, int(ram * technology.vm_memory_multiplier)


def size_role(
    config: VMRoleConfig,
    ha_multiplier: float,
    technology: TechnologyProfile,
    overhead_percent: float,
    name: Optional[str] = None,
) -> VMRoleSizing:
    base_cpu, base_ram = role_specs(config.role, config.size, technology)
    cpu = config.custom_cpu if config.custom_cpu is not None else base_cpu
    ram = config.custom_ram if config.custom_ram is not None else base_ram
    return VMRoleSizing(
        role=config.role,
        name=config.name or name or describe(config.role),
        size=config.size,
        base_instances=config.instances,
        total_instances=math.ceil(config.instances * ha_multiplier),
        cpu_per_instance=inflate(cpu, overhead_percent),
        ram_per_instance=inflate(ram, overhead_percent),
        disk_per_instance=config.disk_gb,
    )


def size_vm_environment(
    environment: Environment,
    config: VMEnvironmentConfig,
    roles: Sequence[VMRoleConfig],
    workload: VMWorkload,
    template_names: Mapping[ServerRole, str],
) -> VMEnvironmentSizing:
    multiplier = HA_MULTIPLIERS[config.ha_pattern]
    lb_vms, lb_cpu, lb_ram = LOAD_BALANCERS[config.load_balancer]
    sized = [
        size_role(
            role,
            multiplier,
            workload.technology,
            workload.system_overhead_percent,
            name=template_names.get(role.role),
        )
        for role in roles
    ]
    result = VMEnvironmentSizing(
        environment=environment,
        name=ENVIRONMENT_NAMES.get(environment, environment.display_name),
        is_prod=environment.is_prod,
        ha_pattern=config.ha_pattern,
        dr_pattern=config.dr_pattern,
        load_balancer=config.load_balancer,
        roles=sized,
        load_balancer_vms=lb_vms,
        load_balancer_cpu=lb_vms * lb_cpu,
        load_balancer_ram=lb_vms * lb_ram,
        storage_gb=config.storage_gb,
    )
    logger.debug(
        "Sized VM environment %s: %d vms, %d cpu, %d GB ram (%s)",
        environment,
        result.total_vms,
        result.total_cpu,
        result.total_ram,
        config.ha_pattern,
    )
    return result


def _roles_for(
    environment: Environment,
    config: VMEnvironmentConfig,
    templates: Sequence[VMRoleTemplate],
) -> Tuple[VMRoleConfig, ...]:
    if config.roles:
        return config.roles
    seeded = tuple(t.to_config() for t in templates if t.required)
    if not seeded:
        raise InvalidInput(
            f"environment={environment} is enabled but has no server roles"
        )
    logger.debug(
        "Seeded %s with required roles %s",
        environment,
        [r.role.value for r in seeded],
    )
    return seeded


def calculate_vm_fleet_sizing(
    workload: VMWorkload,
    role_templates: Optional[Sequence[VMRoleTemplate]],
    environment_configs: Mapping[Environment, VMEnvironmentConfig],
) -> VMSizingResult:
    """Size a VM fleet for every enabled environment

    ``role_templates`` default to the technology's own templates. They name
    roles that carry no explicit name and supply the required roles of an
    enabled environment that lists none.
    """
    if Environment.prod not in workload.enabled_environments:
        raise InvalidInput("Production environment must always be enabled")
    missing = [e for e in workload.enabled_environments if e not in environment_configs]
    if missing:
        raise InvalidInput(
            "Configuration required for enabled environments: "
            f"{[e.value for e in missing]}"
        )

    templates = (
        workload.technology.role_templates if role_templates is None else role_templates
    )
    template_names = {t.role: t.name for t in reversed(templates) if t.name}

    environments: List[VMEnvironmentSizing] = []
    for env in workload.enabled_environments:
        config = environment_configs[env]
        if not config.enabled:
            continue
        roles = _roles_for(env, config, templates)
        environments.append(
            size_vm_environment(env, config, roles, workload, template_names)
        )

    return VMSizingResult(
        technology=workload.technology.name, environments=environments
    )
