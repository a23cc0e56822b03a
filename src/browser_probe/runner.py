"""
Top-level diagnostic run: probe, report, then optionally run scenarios.
"""

import logging
from dataclasses import dataclass, field

from .browser import launch_browser
from .config import Settings
from .prober import Launcher, ProbeResult, probe_all
from .registry import Registry
from .reporter import Reporter
from .scenario import ScenarioResult, run_scenarios

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Everything a run found, for exit-code decisions."""

    probes: list[ProbeResult] = field(default_factory=list)
    scenarios: list[ScenarioResult] = field(default_factory=list)

    @property
    def detected(self) -> list[ProbeResult]:
        return [r for r in self.probes if r.installed]

    @property
    def failures(self) -> list[str]:
        """Names of browsers with a failed probe or scenario, in run order."""
        failed = {r.descriptor.key: r.descriptor.name for r in self.probes if r.failed}
        for result in self.scenarios:
            if not result.success:
                failed.setdefault(result.descriptor.key, result.descriptor.name)
        return list(failed.values())


async def run_diagnostics(
    registry: Registry,
    settings: Settings,
    reporter: Reporter,
    test_all: bool = False,
    launcher: Launcher = launch_browser,
) -> RunReport:
    """
    Probe every registered browser and report on them.

    With test_all, the navigation scenario then runs once for each
    detected browser, whatever its probe outcome was.
    """
    report = RunReport()

    reporter.detection_header()
    report.probes = await probe_all(
        registry,
        launcher=launcher,
        launch_timeout=settings.launch_timeout,
        on_result=reporter.probe_result,
    )

    detected = report.detected
    reporter.summary(report.probes)
    logger.info(f"{len(detected)} of {len(registry)} browsers detected")

    if not detected:
        reporter.install_hints(registry)
        return report

    reporter.comparison()
    reporter.recommendations()

    if test_all:
        reporter.scenarios_header()
        report.scenarios = await run_scenarios(
            [r.descriptor for r in detected],
            settings,
            launcher=launcher,
            on_start=reporter.scenario_start,
            on_result=reporter.scenario_result,
        )

    return report
