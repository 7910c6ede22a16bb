"""Bank workflows built from ledgerflow steps."""

from __future__ import annotations

from .people import Person, sample_person
from .variants import build_workflow, crypto_steps, fiat_steps, variant_name

__all__ = [
    "Person",
    "sample_person",
    "build_workflow",
    "crypto_steps",
    "fiat_steps",
    "variant_name",
]
