"""
ShareX integration — locate, gate, back up, mutate, verify.
"""

from clip_bridge_setup.core.services.companion.backup import backup_config  # noqa: F401
from clip_bridge_setup.core.services.companion.integrate import (  # noqa: F401
    CompanionReport,
    integrate_companion,
)
from clip_bridge_setup.core.services.companion.locate import locate_config  # noqa: F401
from clip_bridge_setup.core.services.companion.process_gate import gate_companion  # noqa: F401
from clip_bridge_setup.core.services.companion.script import (  # noqa: F401
    default_script_path,
    render_companion_script,
)
