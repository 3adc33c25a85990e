"""
Guest execution — the host→WSL command boundary.
"""

from clip_bridge_setup.core.services.guest.base import GuestShell  # noqa: F401
from clip_bridge_setup.core.services.guest.runner import (  # noqa: F401
    CommandResult,
    run_command,
)
from clip_bridge_setup.core.services.guest.wsl import (  # noqa: F401
    WslGuest,
    find_wsl_executable,
    list_instance_names,
)
