# fileexp/config/__init__.py
"""
Configuration for FileExp.
"""

from .settings import BatchConfig, GatewaySettings, GeneratorSettings
from .log_config import setup_logging, resolve_log_level

__all__ = ['BatchConfig', 'GatewaySettings', 'GeneratorSettings', 'setup_logging', 'resolve_log_level']
