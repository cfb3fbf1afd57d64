# apps/core/ratelimit.py

"""
Armazenamento do limitador de requisições

Janela fixa por chave (ip:caminho). O store é escolhido pela configuração
KANBAN_RATE_LIMIT_STORE (caminho pontuado da classe).
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from django.conf import settings
from django.core.cache import caches
from django.utils.module_loading import import_string


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def retry_after(self) -> int:
        return max(0, int(self.reset_at - time.time()) + 1)


class RateLimitStore(ABC):
    """Contrato: registra um hit e devolve (contagem, início da janela)"""

    def __init__(self, window: int, max_requests: int):
        self.window = window
        self.max_requests = max_requests

    @abstractmethod
    def incr(self, key: str, now: float):
        ...

    def hit(self, key: str, now: float = None) -> RateLimitResult:
        now = time.time() if now is None else now
        count, started = self.incr(key, now)
        reset_at = started + self.window
        return RateLimitResult(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_at=reset_at,
        )


class InMemoryRateLimitStore(RateLimitStore):
    """Dicionário em memória com expiração explícita das janelas vencidas"""

    def __init__(self, window, max_requests):
        super().__init__(window, max_requests)
        self._entries = {}
        self._lock = threading.Lock()

    def incr(self, key, now):
        with self._lock:
            self.evict_expired(now)
            count, started = self._entries.get(key, (0, now))
            count += 1
            self._entries[key] = (count, started)
            return count, started

    def evict_expired(self, now):
        vencidas = [k for k, (_c, started) in self._entries.items() if now - started >= self.window]
        for key in vencidas:
            del self._entries[key]
        return len(vencidas)

    def __len__(self):
        return len(self._entries)


class CacheRateLimitStore(RateLimitStore):
    """
    Usa o cache do Django (Redis via django-redis em produção)
    O TTL da chave é a própria janela
    """

    def __init__(self, window, max_requests, alias='default'):
        super().__init__(window, max_requests)
        self.cache = caches[alias]

    def incr(self, key, now):
        bucket = int(now // self.window)
        cache_key = f'ratelimit:{key}:{bucket}'
        if self.cache.add(cache_key, 1, timeout=self.window):
            count = 1
        else:
            try:
                count = self.cache.incr(cache_key)
            except ValueError:
                # Chave expirou entre o add e o incr
                self.cache.set(cache_key, 1, timeout=self.window)
                count = 1
        return count, bucket * self.window


def build_store() -> RateLimitStore:
    store_class = import_string(getattr(
        settings, 'KANBAN_RATE_LIMIT_STORE', 'apps.core.ratelimit.CacheRateLimitStore'
    ))
    return store_class(
        window=getattr(settings, 'KANBAN_RATE_LIMIT_WINDOW', 60),
        max_requests=getattr(settings, 'KANBAN_RATE_LIMIT_MAX_REQUESTS', 60),
    )
