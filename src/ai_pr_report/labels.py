"""AI utilization label classification.

Pull requests carry a manually assigned label such as ``AI40%`` describing how
much of the work was AI-assisted. Only the first matching label is used.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

AI_LABEL_PATTERN = re.compile(r"^AI(\d{1,3})%$")
MAX_AI_UTILIZATION_RATE = 100


class LabelPolicy(str, Enum):
    """How to treat three-digit AI labels above 100%."""

    PASSTHROUGH = "passthrough"
    CLAMP = "clamp"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str) -> "LabelPolicy":
        normalized = value.strip().lower()
        for policy in cls:
            if policy.value == normalized:
                return policy
        choices = ", ".join(policy.value for policy in cls)
        raise ConfigurationError(
            f"Invalid AI rate policy '{value}': expected one of {choices}."
        )


def extract_ai_utilization_rate(
    labels: Iterable[str],
    policy: LabelPolicy = LabelPolicy.PASSTHROUGH,
) -> Optional[int]:
    """Return the percentage from the first ``AI<n>%`` label, if any.

    Business logic:
    - Labels are scanned in order and the first full match of
      ``AI`` + 1-3 digits + ``%`` wins; later AI labels are ignored.
    - ``passthrough`` returns values above 100 unchanged, ``clamp`` caps them
      at 100 and ``reject`` treats the pull request as unlabeled.

    Returns ``None`` when no label matches.
    """
    for label in labels:
        match = AI_LABEL_PATTERN.match(label)
        if match is None:
            continue

        rate = int(match.group(1))
        if rate <= MAX_AI_UTILIZATION_RATE or policy is LabelPolicy.PASSTHROUGH:
            return rate
        if policy is LabelPolicy.CLAMP:
            return MAX_AI_UTILIZATION_RATE

        logger.warning(
            "Ignoring out-of-range AI utilization label",
            extra={"label": label, "rate": rate},
        )
        return None

    return None
