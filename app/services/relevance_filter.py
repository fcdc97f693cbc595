"""Industry relevance heuristics applied after provider results are merged.

The filter favours recall: records with no industry label are kept, and a
label only has to loosely overlap one requested term.
"""

import logging
import re

from app.models import CompanyRecord

logger = logging.getLogger(__name__)

# Shortest word that may match by prefix ("software" ~ "softwares").
MIN_OVERLAP_WORD_LENGTH = 4

_WORD_RE = re.compile(r"[a-z0-9]+")


def _words(text: str) -> list[str]:
    return [w for w in _WORD_RE.findall(text.lower()) if len(w) >= MIN_OVERLAP_WORD_LENGTH]


def matches_industry(label: str, term: str) -> bool:
    """Loose, case-insensitive match between an industry label and one term."""
    label_lower = label.strip().lower()
    term_lower = term.strip().lower()
    if not label_lower or not term_lower:
        return False

    if term_lower in label_lower or label_lower in term_lower:
        return True

    for label_word in _words(label_lower):
        for term_word in _words(term_lower):
            if label_word.startswith(term_word) or term_word.startswith(label_word):
                return True
    return False


def filter_by_industry(records: list[CompanyRecord], terms: list[str]) -> list[CompanyRecord]:
    """Keep unlabeled records and records matching at least one term."""
    if not terms:
        return records

    kept = [
        record for record in records
        if not (record.industry or "").strip()
        or any(matches_industry(record.industry, term) for term in terms)
    ]
    if len(kept) != len(records):
        logger.info(f"Industry filter removed {len(records) - len(kept)} of {len(records)} companies")
    return kept


def exclude_industries(records: list[CompanyRecord], excluded: list[str]) -> list[CompanyRecord]:
    """Drop records whose industry label contains an excluded term."""
    if not excluded:
        return records

    kept = []
    for record in records:
        label = (record.industry or "").strip().lower()
        if label and any(term.strip().lower() in label for term in excluded if term.strip()):
            continue
        kept.append(record)

    if len(kept) != len(records):
        logger.info(f"Industry exclusion removed {len(records) - len(kept)} companies")
    return kept
