"""Configuration module - exports Settings, load_config, and the static region tables."""

from where2play.config.loader import load_config
from where2play.config.regions import REGION_NAMES, REGIONS, BandPopularity, get_region_states
from where2play.config.settings import Settings

__all__ = [
    "REGIONS",
    "REGION_NAMES",
    "BandPopularity",
    "Settings",
    "get_region_states",
    "load_config",
]
