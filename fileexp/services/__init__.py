# fileexp/services/__init__.py
"""
Service layer for FileExp.

Network-backed services are lazy-loaded so that importing the package does not
pull in httpx, FastAPI or deep-translator. Use explicit imports like:
    from fileexp.services.batch_scheduler import BatchScheduler
"""

# Fast imports - no third-party dependencies
from .script_detector import ScriptDetector, script_detector
from .substitutions import apply_substitutions, load_substitutions
from .translation_cache import NOT_TRANSLATABLE, TranslationCache

# Lazy-loaded services via __getattr__
_LAZY_IMPORTS = {
    'BatchScheduler': 'batch_scheduler',
    'BulkGenerator': 'bulk_generator',
    'TranslationProvider': 'providers',
    'GoogleTranslateProvider': 'providers',
    'OllamaProvider': 'providers',
    'create_provider': 'providers',
    'resolve_outcome': 'providers',
    'create_app': 'gateway',
    'run_gateway': 'gateway',
}

# Submodules that can be accessed via __getattr__ (for patching support)
_SUBMODULES = {'batch_scheduler', 'bulk_generator', 'providers', 'gateway'}


def __getattr__(name: str):
    """Lazy-load heavy service modules on first access."""
    import importlib
    if name in _SUBMODULES:
        return importlib.import_module(f'.{name}', __package__)
    if name in _LAZY_IMPORTS:
        module_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(f'.{module_name}', __package__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ScriptDetector',
    'script_detector',
    'apply_substitutions',
    'load_substitutions',
    'NOT_TRANSLATABLE',
    'TranslationCache',
    'BatchScheduler',
    'BulkGenerator',
    'TranslationProvider',
    'GoogleTranslateProvider',
    'OllamaProvider',
    'create_provider',
    'resolve_outcome',
    'create_app',
    'run_gateway',
]
