import logging
import os
import threading
from typing import Dict, List, Optional

from dotenv import load_dotenv

from leadgen.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

MAX_NUMBERED_KEYS = 9


def load_gemini_keys() -> List[str]:
    """
    Read ``GEMINI_API_KEY_1..9`` in order, stopping at the first gap, then
    ``GEMINI_API_KEY`` if it is not already among them.
    """
    keys = []
    for i in range(1, MAX_NUMBERED_KEYS + 1):
        key = os.getenv(f"GEMINI_API_KEY_{i}")
        if not key:
            break
        keys.append(key.strip())

    single_key = os.getenv("GEMINI_API_KEY")
    if single_key and single_key.strip() not in keys:
        keys.append(single_key.strip())
    return keys


class APIKeyManager:
    """
    Hands out Gemini API keys round-robin so concurrent research tasks spread
    their calls across every configured key.
    """

    def __init__(self, keys: Optional[List[str]] = None):
        self.keys = list(keys) if keys is not None else load_gemini_keys()
        if not self.keys:
            raise ConfigurationError(
                "No Gemini API key found. Set GEMINI_API_KEY or GEMINI_API_KEY_1..9 in the environment."
            )

        self._next = 0
        self._lock = threading.Lock()
        self._usage: Dict[str, Dict[str, int]] = {key: {"calls": 0, "errors": 0} for key in self.keys}
        logger.info(f"Loaded {len(self.keys)} Gemini API key(s) for rotation")

    def get_round_robin_key(self) -> str:
        with self._lock:
            key = self.keys[self._next]
            self._next = (self._next + 1) % len(self.keys)
            return key

    def record_api_call(self, key: str, success: bool = True):
        with self._lock:
            usage = self._usage.get(key)
            if usage is None:
                return
            usage["calls"] += 1
            if not success:
                usage["errors"] += 1

    def get_key_stats(self) -> dict:
        """Per-key call and error counts, labelled by position so keys never reach the logs."""
        with self._lock:
            return {
                f"Key_{i + 1}": {
                    "calls": usage["calls"],
                    "errors": usage["errors"],
                    "error_rate": usage["errors"] / max(usage["calls"], 1),
                }
                for i, usage in enumerate(self._usage[key] for key in self.keys)
            }


_key_manager: Optional[APIKeyManager] = None


def get_key_manager() -> APIKeyManager:
    """Shared instance, created on first use so importing never needs a key."""
    global _key_manager
    if _key_manager is None:
        _key_manager = APIKeyManager()
    return _key_manager
