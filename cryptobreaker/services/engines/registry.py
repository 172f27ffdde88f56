import importlib
from typing import Type

from cryptobreaker.models.schemas import CipherFamily, CipherType
from cryptobreaker.services.engines.base import CipherEngine


class EngineRegistry:
    """
    Registry for cipher engines.

    Maps cipher types to engine classes. Lookups build a fresh instance, so
    callers never share engine state.
    """

    _engines: dict[CipherType, Type[CipherEngine]] = {}

    @classmethod
    def register(cls, engine_class: Type[CipherEngine]) -> Type[CipherEngine]:
        """
        Register a cipher engine class.

        Can be used as a decorator:
            @EngineRegistry.register
            class CaesarEngine(CipherEngine):
                ...

        Args:
            engine_class: The engine class to register

        Returns:
            The engine class (for decorator usage)
        """
        cls._engines[engine_class.cipher_type] = engine_class
        return engine_class

    @classmethod
    def create(cls, name: str | CipherType, **kwargs) -> CipherEngine | None:
        """
        Build a new engine for a cipher type name.

        Args:
            name: Cipher type, e.g. "caesar" (case-insensitive)
            **kwargs: Passed to the engine constructor

        Returns:
            Engine instance, or None for an unrecognized name
        """
        _load_engines()

        try:
            cipher_type = CipherType(name.lower() if isinstance(name, str) else name)
        except ValueError:
            return None

        engine_class = cls._engines.get(cipher_type)
        if engine_class is None:
            return None
        return engine_class(**kwargs)

    @classmethod
    def get_engines_by_family(cls, family: CipherFamily) -> list[CipherEngine]:
        """
        Build one engine per registered type in a cipher family.

        Args:
            family: The cipher family

        Returns:
            List of engine instances
        """
        _load_engines()
        return [
            engine_class()
            for engine_class in cls._engines.values()
            if engine_class.cipher_family == family
        ]

    @classmethod
    def list_registered(cls) -> list[CipherType]:
        """
        List all registered cipher types.

        Returns:
            List of registered cipher types
        """
        _load_engines()
        return list(cls._engines.keys())

    @classmethod
    def is_registered(cls, cipher_type: CipherType) -> bool:
        _load_engines()
        return cipher_type in cls._engines


def create_engine(name: str | CipherType, **kwargs) -> CipherEngine | None:
    """Engine factory: fresh engine for ``name``, or None if unknown."""
    return EngineRegistry.create(name, **kwargs)


ENGINE_MODULES = (
    "cryptobreaker.services.engines.monoalphabetic.caesar",
    "cryptobreaker.services.engines.monoalphabetic.substitution",
    "cryptobreaker.services.engines.polyalphabetic.vigenere",
)

_loaded = False


# Engine modules import this one, so they are loaded on first lookup
def _load_engines() -> None:
    """
    Load all engine modules to trigger registration.

    A failed import propagates and leaves the registry unloaded, so the next
    lookup retries instead of silently finding nothing.
    """
    global _loaded
    if _loaded:
        return

    for module in ENGINE_MODULES:
        importlib.import_module(module)

    _loaded = True
