import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from pydantic import BaseModel
from pydantic import model_validator
from pydantic import ValidationError

from infra_sizing.errors import InvalidInput
from infra_sizing.errors import SizingError
from infra_sizing.interface import AppCounts
from infra_sizing.interface import CloudProvider
from infra_sizing.interface import ClusterMode
from infra_sizing.interface import CostOptions
from infra_sizing.interface import Distribution
from infra_sizing.interface import Environment
from infra_sizing.interface import GrowthSettings
from infra_sizing.interface import PolicySettings
from infra_sizing.interface import SizingReport
from infra_sizing.interface import Technology
from infra_sizing.interface import VMEnvironmentConfig
from infra_sizing import sizing_planner
from infra_sizing.sizing_planner import SizingPlanner

logger = logging.getLogger(__name__)


class Scenario(BaseModel):
    """A saved sizing question: a cluster scenario names a ``distribution``,
    a VM fleet scenario lists ``vm_environments`` instead."""

    technology: Technology
    distribution: Optional[Distribution] = None
    cluster_mode: ClusterMode = ClusterMode.multi
    selected_environment: Environment = Environment.prod
    enabled_environments: Optional[Tuple[Environment, ...]] = None
    prod_apps: AppCounts = AppCounts()
    non_prod_apps: AppCounts = AppCounts()
    environment_apps: Dict[Environment, AppCounts] = {}
    policy: PolicySettings = PolicySettings()

    vm_environments: Dict[Environment, VMEnvironmentConfig] = {}
    system_overhead_percent: float = 15

    provider: CloudProvider = CloudProvider.aws
    region: Optional[str] = None
    compare_with: List[Tuple[CloudProvider, Optional[str]]] = []
    cost_options: CostOptions = CostOptions()
    growth: GrowthSettings = GrowthSettings()

    @model_validator(mode="after")
    def _one_kind(self) -> "Scenario":
        if (self.distribution is None) == (not self.vm_environments):
            raise ValueError(
                "A scenario sizes either a cluster (distribution) or a VM fleet "
                "(vm_environments)"
            )
        return self


def load_scenario(path: Path) -> Scenario:
    try:
        with open(path, encoding="utf-8") as fd:
            return Scenario(**json.load(fd))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise InvalidInput(f"Could not read scenario {path}: {exc}") from exc


def run(scenario: Scenario, planner: Optional[SizingPlanner] = None) -> SizingReport:
    planner = planner or sizing_planner.planner
    options = scenario.cost_options
    if scenario.distribution is not None:
        sizing = planner.size_cluster(
            distribution=scenario.distribution,
            technology=scenario.technology,
            prod_apps=scenario.prod_apps,
            non_prod_apps=scenario.non_prod_apps,
            environment_apps=scenario.environment_apps,
            enabled_environments=scenario.enabled_environments,
            policy=scenario.policy,
            cluster_mode=scenario.cluster_mode,
            selected_environment=scenario.selected_environment,
        )
        if options.distribution is None:
            options = options.model_copy(
                update={"distribution": scenario.distribution.value}
            )
    else:
        sizing = planner.size_vm_fleet(
            technology=scenario.technology,
            environment_configs=scenario.vm_environments,
            enabled_environments=scenario.enabled_environments,
            system_overhead_percent=scenario.system_overhead_percent,
        )

    return planner.report(
        sizing,
        provider=scenario.provider,
        region=scenario.region,
        options=options,
        settings=scenario.growth,
        distribution=scenario.distribution,
        compare_with=scenario.compare_with,
    )


def parse_target(value: str) -> Tuple[str, Optional[str]]:
    provider, _, region = value.partition(":")
    return provider, region or None


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="infra-sizing",
        description=(
            "Size a cluster or VM fleet from a scenario file, then price it and "
            "project its growth"
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("scenario", type=Path, help="Scenario JSON file")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in CloudProvider],
        help="Override the scenario's provider",
    )
    parser.add_argument("--region", help="Override the scenario's region")
    parser.add_argument(
        "--compare",
        action="append",
        default=[],
        type=parse_target,
        metavar="PROVIDER[:REGION]",
        help="Also price the sizing here, may be repeated",
    )
    parser.add_argument("--debug", action="store_true", help="Show verbose output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    try:
        scenario = load_scenario(args.scenario)
        overrides = {}
        if args.provider is not None:
            overrides["provider"] = CloudProvider(args.provider)
        if args.region is not None:
            overrides["region"] = args.region
        if args.compare:
            overrides["compare_with"] = scenario.compare_with + args.compare
        if overrides:
            scenario = scenario.model_copy(update=overrides)
        report = run(scenario)
    except SizingError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
