"""Rule-based expense categorization from free-text descriptions"""

import re
from typing import Dict, List

from household_ledger.domain.models import CategorizationResult, ExpenseCategory

CATEGORY_KEYWORDS: Dict[ExpenseCategory, List[str]] = {
    ExpenseCategory.GROCERIES: [
        "grocery", "walmart", "target", "costco", "safeway", "kroger", "food", "supermarket",
        "market", "produce", "meat", "dairy", "bread", "milk", "eggs", "vegetables", "fruits",
    ],
    ExpenseCategory.UTILITIES: [
        "wifi", "internet", "electricity", "electric", "power", "gas", "water", "utility",
        "internet bill", "electric bill", "water bill", "gas bill", "phone bill", "internet service",
    ],
    ExpenseCategory.RENT: ["rent", "apartment", "housing", "lease", "landlord", "mortgage"],
    ExpenseCategory.TRANSPORTATION: [
        "uber", "lyft", "taxi", "gas", "fuel", "petrol", "parking", "metro", "subway",
        "bus", "train", "flight", "airline", "car", "vehicle", "maintenance", "repair",
    ],
    ExpenseCategory.DINING: [
        "restaurant", "cafe", "coffee", "starbucks", "mcdonald", "burger", "pizza", "food",
        "dinner", "lunch", "breakfast", "takeout", "delivery", "doordash", "ubereats", "grubhub",
    ],
    ExpenseCategory.ENTERTAINMENT: [
        "movie", "cinema", "netflix", "spotify", "music", "concert", "theater", "game",
        "streaming", "subscription", "hulu", "disney", "amazon prime", "entertainment",
    ],
    ExpenseCategory.SHOPPING: [
        "amazon", "store", "shop", "purchase", "buy", "clothing", "clothes", "shoes",
        "electronics", "online", "retail", "mall",
    ],
    ExpenseCategory.BILLS: [
        "bill", "payment", "subscription", "insurance", "health", "medical", "phone",
        "credit card", "loan", "debt",
    ],
}

# Whole-word patterns, compiled once
_PATTERNS: Dict[ExpenseCategory, List["re.Pattern[str]"]] = {
    category: [re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE) for keyword in keywords]
    for category, keywords in CATEGORY_KEYWORDS.items()
}

MAX_RULE_CONFIDENCE = 90
NO_MATCH_CONFIDENCE = 20


def categorize_by_rules(description: str) -> CategorizationResult:
    """
    Pick the category with the most keyword hits.

    Ties go to the category listed first; no hits means "other" with low
    confidence. Confidence is 50 + 10 per hit, capped at 90.
    """
    text = description.strip()

    best_category = ExpenseCategory.OTHER
    best_score = 0
    for category, patterns in _PATTERNS.items():
        score = sum(1 for pattern in patterns if pattern.search(text))
        if score > best_score:
            best_category, best_score = category, score

    if best_score == 0:
        return CategorizationResult(
            category=ExpenseCategory.OTHER,
            confidence=NO_MATCH_CONFIDENCE,
            reason="No keyword matches found",
        )

    return CategorizationResult(
        category=best_category,
        confidence=min(MAX_RULE_CONFIDENCE, 50 + best_score * 10),
        reason=f"Matched {best_score} keyword(s)",
    )
