"""inbox-features: sparse feature encoders for reply prediction.

Turns email messages into indexed sparse feature vectors for a model that
predicts whether the mailbox owner will reply. Vocabularies of per-user
features grow on-line while keeping bucket indices stable.
"""

from __future__ import annotations

__version__ = "0.3.0"

__all__ = ["__version__"]
