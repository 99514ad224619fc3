from typing import Dict, Iterable, List, Union

from .classifier import categorize
from .schemas import BatchResult, BatchSummary, CompanyCodeResult
from .types import ResultCategory


Results = Union[BatchResult, Iterable[CompanyCodeResult]]


def iter_results(results: Results) -> Iterable[CompanyCodeResult]:
    if isinstance(results, BatchResult):
        return results.results
    return results


def to_phone_mapping(results: Results) -> Dict[str, str]:
    """Phone number -> company code for every result, sentinels included"""
    return {result.phone_number: result.company_code for result in iter_results(results)}


def unique_company_codes(results: Results) -> List[str]:
    """Sorted distinct company codes of successful results, usable as report filter values"""
    codes = {
        result.company_code
        for result in iter_results(results)
        if categorize(result) is ResultCategory.successful
    }
    return sorted(codes)


def summarize(results: Results) -> BatchSummary:
    counts = {category: 0 for category in ResultCategory}
    total = 0
    for result in iter_results(results):
        counts[categorize(result)] += 1
        total += 1
    return BatchSummary(
        total=total,
        successful=counts[ResultCategory.successful],
        errors=counts[ResultCategory.error],
        unknown=counts[ResultCategory.unknown],
    )
