"""Deployment tasks and workflows.

A workflow is an ordered list of steps. Steps run strictly in order and stop
at the first failure; compensating actions of the steps that had already
completed then run in reverse order. This is not atomic: side effects of
steps without a compensation stay in place, and every step is safe to re-run.
"""
from functools import partial
from typing import Callable, Dict, List, Optional

from fuuid import b58_fuuid

from venv_deploy import environments, packages, relocation
from venv_deploy.config import Settings
from venv_deploy.errors import UnknownTaskError, log_error
from venv_deploy.logging import get_logger
from venv_deploy.transport import CommandHostPackages, HostPackages, Transport
from venv_deploy.types import Step

logger = get_logger(__name__)


def dependencies(
    settings: Settings,
    transport: Transport,
    host_packages: Optional[HostPackages] = None,
) -> None:
    """Install the interpreter runtime and rsync on the host."""
    host_packages = host_packages or CommandHostPackages(transport, settings.host_package_command)
    host_packages.install(settings.install_host_packages)


def install(settings: Settings, transport: Transport) -> None:
    """Placeholder: virtualenv itself is provided by the host."""


def uninstall(settings: Settings, transport: Transport) -> None:
    """Placeholder: nothing is removed from the host."""


def create_shared(settings: Settings, transport: Transport) -> None:
    environments.create(transport, settings, settings.shared)


def destroy_shared(settings: Settings, transport: Transport) -> None:
    environments.destroy(transport, settings.shared)


def update_shared(settings: Settings, transport: Transport) -> None:
    packages.install_requirements(transport, settings, settings.shared)


def create_release(settings: Settings, transport: Transport) -> None:
    relocation.relocate(transport, settings, settings.shared, settings.release)


def destroy_release(settings: Settings, transport: Transport) -> None:
    environments.destroy(transport, settings.release)


def setup_steps(settings: Settings, host_packages: Optional[HostPackages] = None) -> List[Step]:
    steps = []
    if settings.run_dependency_install:
        steps.append(Step("dependencies", partial(dependencies, host_packages=host_packages)))
    steps.append(Step("create_shared", create_shared))
    steps.append(Step("install", install))
    return steps


def update_steps(settings: Settings, host_packages: Optional[HostPackages] = None) -> List[Step]:
    """Refresh the shared environment, then copy it into the release.

    ``create_release`` is the last step, so removing the release environment
    only happens when a caller appends further steps and one of them fails.
    """
    return [
        Step("update_shared", update_shared),
        Step("create_release", create_release, compensate=destroy_release),
    ]


def dependencies_steps(settings: Settings, host_packages: Optional[HostPackages] = None) -> List[Step]:
    return [Step("dependencies", partial(dependencies, host_packages=host_packages))]


def _single(name: str, action: Callable) -> Callable[..., List[Step]]:
    return lambda settings, host_packages=None: [Step(name, action)]


DESCRIPTIONS = {
    "setup": "Install host dependencies and create the shared virtualenv",
    "dependencies": "Install host packages needed by virtualenv",
    "install": "Install virtualenv (no-op)",
    "uninstall": "Uninstall virtualenv (no-op)",
    "create_shared": "Create the shared virtualenv",
    "destroy_shared": "Destroy the shared virtualenv",
    "update": "Refresh shared packages and build the release virtualenv",
    "update_shared": "Install requirements into the shared virtualenv",
    "create_release": "Copy the shared virtualenv into the release",
}

WORKFLOWS: Dict[str, Callable[..., List[Step]]] = {
    "setup": setup_steps,
    "dependencies": dependencies_steps,
    "install": _single("install", install),
    "uninstall": _single("uninstall", uninstall),
    "create_shared": _single("create_shared", create_shared),
    "destroy_shared": _single("destroy_shared", destroy_shared),
    "update": update_steps,
    "update_shared": _single("update_shared", update_shared),
    "create_release": _single("create_release", create_release),
}


def run_steps(steps: List[Step], settings: Settings, transport: Transport, log=None) -> None:
    """Run step forwards in order, compensating completed steps on failure."""
    log = log or logger
    completed: List[Step] = []

    for step in steps:
        log.info({"event": "step_start", "step": step.name})
        try:
            step.forward(settings, transport)
        except Exception as e:
            log.error({"event": "step_failed", "step": step.name, "error": str(e)})
            _compensate(completed, settings, transport, log)
            raise
        completed.append(step)
        log.info({"event": "step_complete", "step": step.name})


def _compensate(completed: List[Step], settings: Settings, transport: Transport, log) -> None:
    for step in reversed(completed):
        if step.compensate is None:
            continue
        log.warning({"event": "step_compensate", "step": step.name})
        try:
            step.compensate(settings, transport)
        except Exception as e:
            log_error(e, {"step": step.name, "phase": "compensate"})


def run_task(
    name: str,
    settings: Settings,
    transport: Transport,
    host_packages: Optional[HostPackages] = None,
) -> None:
    """Run a named task or workflow against one host."""
    if name not in WORKFLOWS:
        raise UnknownTaskError(name)

    log = logger.bind(run_id=b58_fuuid(), task=name)

    if settings.no_release:
        log.info({"event": "task_skipped", "reason": "no_release"})
        return

    steps = WORKFLOWS[name](settings, host_packages=host_packages)
    log.info({"event": "task_start", "steps": [step.name for step in steps]})
    run_steps(steps, settings, transport, log)
    log.info({"event": "task_complete"})
