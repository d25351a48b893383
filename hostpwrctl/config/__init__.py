"""
Configuration management for hostpwrctl.

Built-in defaults describe the standard OpenBMC state objects; a YAML file
and command line options may override them.
"""
from .defaults import PowerControlConfig, get_default_config
from .loader import ConfigLoader

__all__ = ["ConfigLoader", "PowerControlConfig", "get_default_config"]
