"""
Rule-driven classification of metric keys into entity categories.

Rules are evaluated top to bottom and the first match wins:

1. exact aggregate key (``entities.hostile`` -> Hostile),
2. per-type keys by species list, exact type, or substring token,
3. any other per-type key -> Other.

Keys without a subtype that match no exact rule are ignored so that
unrelated metrics never leak into the totals.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, MutableMapping, Optional, Tuple

from ..logging_config import get_logger
from ..patterns import (
    AGGREGATE_CATEGORY_KEYS,
    HOSTILE_SPECIES,
    ITEM_TYPE,
    PASSIVE_SPECIES,
    PLAYER_TYPE,
    PROJECTILE_TOKENS,
    VEHICLE_TOKENS,
)
from .keys import KeyParser, ParsedKey

logger = get_logger(__name__)


class Category(str, Enum):
    HOSTILE = "Hostile"
    PASSIVE = "Passive"
    AMBIENT = "Ambient"
    ITEMS = "Items"
    PLAYERS = "Players"
    VEHICLES = "Vehicles"
    PROJECTILES = "Projectiles"
    OTHER = "Other"


Predicate = Callable[[str, ParsedKey], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """A named predicate that routes matching keys to one category."""

    name: str
    category: Category
    predicate: Predicate

    def matches(self, key: str, parsed: ParsedKey) -> bool:
        return self.predicate(key, parsed)


def exact_key_rule(key: str, category: Category) -> ClassificationRule:
    return ClassificationRule(f"key == {key}", category, lambda k, _parsed: k == key)


def type_in_rule(name: str, types: Iterable[str], category: Category) -> ClassificationRule:
    members = frozenset(types)
    return ClassificationRule(
        name, category, lambda _k, parsed: parsed.subtype is not None and parsed.type_token in members
    )


def type_contains_rule(name: str, tokens: Iterable[str], category: Category) -> ClassificationRule:
    needles = tuple(tokens)
    return ClassificationRule(
        name,
        category,
        lambda _k, parsed: parsed.subtype is not None
        and any(token in parsed.type_token for token in needles),
    )


def default_rules() -> List[ClassificationRule]:
    """The standard rule table, in evaluation order."""
    rules = [exact_key_rule(key, Category(name)) for key, name in AGGREGATE_CATEGORY_KEYS.items()]
    rules += [
        type_in_rule("passive species", PASSIVE_SPECIES, Category.PASSIVE),
        type_in_rule("hostile species", HOSTILE_SPECIES, Category.HOSTILE),
        type_in_rule("item", [ITEM_TYPE], Category.ITEMS),
        type_in_rule("player", [PLAYER_TYPE], Category.PLAYERS),
        type_contains_rule("vehicle", VEHICLE_TOKENS, Category.VEHICLES),
        type_contains_rule("projectile", PROJECTILE_TOKENS, Category.PROJECTILES),
        ClassificationRule(
            "other typed", Category.OTHER, lambda _k, parsed: parsed.subtype is not None
        ),
    ]
    return rules


def nonzero_totals(accumulator: MutableMapping[Category, float]) -> Dict[Category, float]:
    """Drop categories whose accumulated value is not positive."""
    return {category: total for category, total in accumulator.items() if total > 0}


class CategoryClassifier:
    """Folds (key, value) pairs into category totals using a rule table."""

    def __init__(
        self,
        rules: Optional[List[ClassificationRule]] = None,
        parser: Optional[KeyParser] = None,
    ):
        self.rules = list(rules) if rules is not None else default_rules()
        self.parser = parser or KeyParser()

    def category_for(self, key: str) -> Optional[Category]:
        """Category of the first matching rule, or None if no rule applies."""
        parsed = self.parser.parse(key)
        for rule in self.rules:
            if rule.matches(key, parsed):
                return rule.category
        return None

    def classify(
        self, key: str, value: float, accumulator: MutableMapping[Category, float]
    ) -> Optional[Category]:
        """Add ``value`` to the category ``key`` belongs to.

        Returns:
            The category credited, or None if the key was ignored.
        """
        category = self.category_for(key)
        if category is None:
            logger.debug("No classification rule for %s", key)
            return None
        accumulator[category] = accumulator.get(category, 0.0) + value
        return category

    def classify_all(self, items: Iterable[Tuple[str, float]]) -> Dict[Category, float]:
        """Classify every pair and return totals with empty categories omitted."""
        accumulator: Dict[Category, float] = {}
        for key, value in items:
            self.classify(key, value, accumulator)
        return nonzero_totals(accumulator)
