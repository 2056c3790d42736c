"""
Built-in key generator implementations for lib.cache
"""

from .types import KeyGenerator


class StringKeyGenerator(KeyGenerator[str]):
    """
    Pass-through key generator for string keys.

    Prefix invalidation relies on keys being readable strings, so this is the
    default generator for DictCache.

    Example:
        >>> generator = StringKeyGenerator()
        >>> generator.generateKey("current:london:metric:en")
        'current:london:metric:en'
    """

    def generateKey(self, obj: str) -> str:
        """
        Generate cache key from string input

        Raises:
            TypeError: If obj is not a string
        """
        if not isinstance(obj, str):
            raise TypeError(f"StringKeyGenerator expects string input, got {type(obj).__name__}")

        return obj
