"""Per-reporter contribution counters.

All arithmetic is integer; the running quality average truncates on
division so replays reproduce it exactly.
"""

from __future__ import annotations

import bittensor as bt

from .admission import short_id
from .models import ContributorInfo


class ReputationLedger:
    """Tracks contribution counts, running quality and reputation."""

    def __init__(self) -> None:
        self._contributors: dict[str, ContributorInfo] = {}

    def record(self, reporter: str, quality_score: int, now: int) -> ContributorInfo:
        """Account for one accepted submission.

        The first accepted submission creates the entry; later ones update
        the running average as (avg * (total - 1) + q) // total.
        verification_count starts at 0 and is carried over unchanged;
        admission does not count as a verification.
        """
        info = self._contributors.get(reporter)
        if info is None:
            info = ContributorInfo(
                total_contributions=1,
                data_quality_average=quality_score,
                last_contribution=now,
                reputation_score=quality_score,
                verification_count=0,
            )
        else:
            total = info.total_contributions + 1
            info = ContributorInfo(
                total_contributions=total,
                data_quality_average=(info.data_quality_average * (total - 1) + quality_score) // total,
                last_contribution=now,
                reputation_score=info.reputation_score + quality_score,
                verification_count=info.verification_count,
            )

        self._contributors[reporter] = info
        bt.logging.debug({"reputation": {
            "event": "recorded",
            "reporter": short_id(reporter),
            "quality": quality_score,
            "total": info.total_contributions,
            "reputation": info.reputation_score,
        }})
        return info

    def get(self, reporter: str) -> ContributorInfo | None:
        info = self._contributors.get(reporter)
        return info.model_copy() if info is not None else None

    def __contains__(self, reporter: str) -> bool:
        return reporter in self._contributors

    def __len__(self) -> int:
        return len(self._contributors)

    def reporters(self) -> list[str]:
        return sorted(self._contributors)


__all__ = ["ReputationLedger"]
