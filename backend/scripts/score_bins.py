"""Fetch and score one or more BINs from NYC Open Data.

Run from backend/: python3 scripts/score_bins.py 3000000 1001234
"""
import asyncio
import sys

from compliance_report.services.property_service import (
    PropertyLookupError,
    PropertyService,
)
from compliance_report.services.report_summary import build_report_summary
from compliance_report.services.scoring_engine import compute_compliance_score, risk_label


async def main(bins: list[str]) -> int:
    service = PropertyService()
    failed = 0

    try:
        for bin_number in bins:
            try:
                data = await service.fetch(bin_number=bin_number)
            except PropertyLookupError as e:
                print(f"{bin_number}: fetch failed ({e})")
                failed += 1
                continue

            score = compute_compliance_score(data)
            summary = build_report_summary(data, score)
            print(
                f"{bin_number} {data.address or '(no address)'}: "
                f"{score.overall}/100 {risk_label(score.risk_level)} "
                f"({summary['open_violations']} open, {summary['closed_violations']} closed)"
            )
            for category in score.categories:
                print(f"    {category.category:<18} {category.score:>3}  {category.details}")
            for flag in summary["risk_flags"]:
                print(f"    ! {flag}")
    finally:
        await service.close()

    return 1 if failed else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("usage: score_bins.py BIN [BIN ...]")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1:])))
