"""Label restriction rules and the list of restricted rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

STARTS_WITH_PREFIX = "starts-with:"
ANY_MARKER = "*"
RULE_METADATA_VERSION = "V0"


class RuleKind(Enum):
    """How a rule matches a label."""

    EXACT_MATCH = "exact-match"
    STARTS_WITH = "starts-with"
    ANY = "any"


@dataclass(frozen=True)
class Rule:
    """A rule that decides whether a label is covered by it.

    Its string form is the label itself for an exact match,
    ``starts-with:<prefix>`` for a prefix match and ``*`` for any label.
    """

    kind: RuleKind
    value: str = ""

    @classmethod
    def exact(cls, value: str) -> Rule:
        return cls(RuleKind.EXACT_MATCH, value)

    @classmethod
    def starts_with(cls, prefix: str) -> Rule:
        return cls(RuleKind.STARTS_WITH, prefix)

    @classmethod
    def any(cls) -> Rule:
        return cls(RuleKind.ANY)

    @classmethod
    def from_str(cls, text: str) -> Rule:
        """Parse the string form of a rule."""
        if text == ANY_MARKER:
            return cls.any()
        if text.startswith(STARTS_WITH_PREFIX):
            return cls.starts_with(text[len(STARTS_WITH_PREFIX):])
        return cls.exact(text)

    def __str__(self) -> str:
        if self.kind is RuleKind.ANY:
            return ANY_MARKER
        if self.kind is RuleKind.STARTS_WITH:
            return f"{STARTS_WITH_PREFIX}{self.value}"
        return self.value

    def applies(self, label: str) -> bool:
        """Whether this rule covers the label."""
        if self.kind is RuleKind.ANY:
            return True
        if self.kind is RuleKind.STARTS_WITH:
            return label.startswith(self.value)
        return label == self.value

    def applies_to_any(self, labels: Iterable[str]) -> bool:
        """Whether this rule covers at least one of the labels.

        A rule of kind ``ANY`` applies even to an empty set of labels.
        """
        if self.kind is RuleKind.ANY:
            return True
        return any(self.applies(label) for label in labels)


@dataclass(frozen=True)
class RuleMetadata:
    """Description attached to a restricted rule."""

    description: str

    def to_json(self) -> dict:
        return {
            "description": self.description,
            "rule_metadata_version": RULE_METADATA_VERSION,
        }

    @classmethod
    def from_json(cls, data: Mapping) -> RuleMetadata:
        version = data.get("rule_metadata_version")
        if version != RULE_METADATA_VERSION:
            raise ValueError(f"Unknown rule metadata version: {version!r}")
        try:
            description = data["description"]
        except KeyError:
            raise ValueError("Rule metadata has no description") from None
        if not isinstance(description, str):
            raise ValueError("Rule metadata description must be a string")
        return cls(description)


@dataclass
class RulesList:
    """The set of restricted rules together with their metadata."""

    rules: dict[Rule, RuleMetadata] = field(default_factory=dict)

    def is_restricted(self, label: str) -> bool:
        """Whether any restricted rule covers the label."""
        return any(rule.applies(label) for rule in self.rules)

    def find_restricted(self, labels: Iterable[str]) -> set[str]:
        """Labels that are covered by an exact or prefix rule.

        Rules of kind ``ANY`` contribute no labels here.
        """
        labels = list(labels)
        return {
            label
            for rule in self.rules
            if rule.kind is not RuleKind.ANY
            for label in labels
            if rule.applies(label)
        }

    def set_restricted(self, rules: RulesList) -> None:
        """Add rules, replacing the metadata of rules already present."""
        self.rules.update(rules.rules)

    def unset_restricted(self, rules: Iterable[Rule]) -> None:
        """Remove the given rules; unknown rules are ignored."""
        for rule in rules:
            self.rules.pop(rule, None)

    def to_json(self) -> dict:
        return {str(rule): metadata.to_json() for rule, metadata in self.rules.items()}

    @classmethod
    def from_json(cls, data: Mapping) -> RulesList:
        return cls(
            {Rule.from_str(key): RuleMetadata.from_json(value) for key, value in data.items()}
        )