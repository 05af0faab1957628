"""Helper functions extracted from main.py for cleaner organization."""
from __future__ import annotations

import logging
from typing import Iterable, List, Mapping


def log_processing_summary(logger: logging.Logger, label: str, summary: Mapping[str, object]) -> None:
    """Log processing summary with key-value pairs."""
    pretty = ", ".join(f"{key}={value}" for key, value in summary.items())
    logger.info("Processing summary (%s): %s", label, pretty)


def parse_fund_tokens(entries: Iterable[str]) -> List[str]:
    """Split repeatable, comma separated ``--fund`` values into unique upper-case ISINs."""
    funds: List[str] = []
    for entry in entries:
        for token in entry.replace(",", " ").split():
            token = token.strip().upper()
            if token and token not in funds:
                funds.append(token)
    return funds
