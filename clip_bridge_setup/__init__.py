"""WSL Clip Bridge Setup — provision the clipboard bridge into WSL and wire it into ShareX."""

__version__ = "0.1.0"
