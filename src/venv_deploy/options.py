"""Option lists for virtualenv creation and pip installs."""
from typing import List

from venv_deploy.config import Settings

DEFAULT_CREATION_OPTIONS = ["--distribute", "--quiet"]
SYSTEM_PACKAGES_OPTION = "--system-site-packages"
DEFAULT_INSTALL_OPTIONS = ["--quiet"]


def creation_options(settings: Settings) -> List[str]:
    """Flags passed to the virtualenv tool, caller extras last."""
    options = list(DEFAULT_CREATION_OPTIONS)
    if settings.use_system_packages:
        options.append(SYSTEM_PACKAGES_OPTION)
    return options + list(settings.extra_creation_options)


def install_options(settings: Settings) -> List[str]:
    """Flags passed to every pip invocation, caller extras last."""
    return DEFAULT_INSTALL_OPTIONS + list(settings.extra_install_options)


def pip_install_options(settings: Settings) -> List[str]:
    """Flags for an install pass: install options followed by install-only flags."""
    return install_options(settings) + list(settings.install_extra_flags)
