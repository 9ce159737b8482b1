# Attestation ledger backends
from app.services.ledger.base import Attestation, AttestationStatus, Ledger
from app.services.ledger.http import HttpLedger
from app.services.ledger.jsonl import JsonlLedger
from app.services.ledger.memory import InMemoryLedger


def get_ledger(backend: str, **kwargs) -> Ledger:
    """
    Factory function to get a ledger by backend name.

    Args:
        backend: One of 'memory', 'jsonl', 'http'
        **kwargs: Backend-specific configuration
            memory: confirmation_delay
            jsonl: path, confirmation_delay
            http: base_url, api_key, timeout

    Returns:
        Ledger instance
    """
    backends = {
        "memory": InMemoryLedger,
        "simulated": InMemoryLedger,
        "jsonl": JsonlLedger,
        "http": HttpLedger,
    }

    ledger_class = backends.get(backend.lower())
    if not ledger_class:
        raise ValueError(f"Unknown ledger backend: {backend}")

    return ledger_class(**kwargs)


__all__ = [
    "Attestation",
    "AttestationStatus",
    "Ledger",
    "InMemoryLedger",
    "JsonlLedger",
    "HttpLedger",
    "get_ledger",
]
