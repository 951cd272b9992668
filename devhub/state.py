"""Shared contract state: environment, change log, labels, categories and access control."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from devhub.changelog import ChangeLog, ChangeLogQueue, ChangeLogType
from devhub.members import (
    ActionType,
    Member,
    MemberKind,
    MemberMetadata,
    MembersList,
)
from devhub.rules import Rule, RulesList


class ContractError(RuntimeError):
    """Raised when a contract call is refused."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ContractError(message)


@dataclass
class Environment:
    """What a call sees of the chain: who runs it, who called it, and when.

    The caller defaults to the contract account itself.
    """

    current_account_id: str
    predecessor_account_id: Optional[str] = None
    block_height: int = 0
    block_timestamp: int = 0
    attached_deposit: int = 0
    prepaid_gas: int = 0

    def __post_init__(self) -> None:
        if self.predecessor_account_id is None:
            self.predecessor_account_id = self.current_account_id


Color = tuple[int, int, int]


def _check_color(color: Optional[Iterable[int]]) -> Optional[Color]:
    if color is None:
        return None
    values = tuple(color)
    _require(
        len(values) == 3 and all(isinstance(v, int) and 0 <= v <= 255 for v in values),
        f"Label color must be three values from 0 to 255, got {values!r}",
    )
    return values  # type: ignore[return-value]


@dataclass(frozen=True)
class LabelInfo:
    """Display information for a global label."""

    title: Optional[str] = None
    color: Optional[Color] = None


@dataclass
class ContractBase:
    """State and calls shared by every part of the hub contract."""

    env: Environment
    proposal_categories: list[str] = field(default_factory=list)
    rules_list: RulesList = field(default_factory=RulesList)
    members_list: MembersList = field(default_factory=MembersList)
    global_labels_info: dict[str, LabelInfo] = field(default_factory=dict)
    change_log: ChangeLogQueue = field(default_factory=ChangeLogQueue)

    # Change log

    def add_change_log(self, change_log_type: ChangeLogType) -> ChangeLog:
        return self.change_log.add(
            change_log_type, self.env.block_height, self.env.block_timestamp
        )

    def get_change_log(self) -> list[ChangeLog]:
        return self.change_log.entries()

    def get_change_log_since(self, since: int) -> list[ChangeLog]:
        return self.change_log.since(since)

    # Permissions

    def _is_admin_or_moderator(self) -> bool:
        caller = self.env.predecessor_account_id
        return caller == self.env.current_account_id or self.has_moderator(caller)

    def is_allowed_to_write_rfps(self, editor: str) -> bool:
        return editor == self.env.current_account_id or self.has_moderator(editor)

    def is_allowed_to_use_labels(self, editor: Optional[str], labels: Iterable[str]) -> bool:
        """Whether the editor (the caller when None) may put these labels on content."""
        editor = self.env.predecessor_account_id if editor is None else editor
        if editor == self.env.current_account_id:
            return True
        labels = list(labels)
        if not self.rules_list.find_restricted(labels):
            return True
        return ActionType.USE_LABELS in self.members_list.check_permissions(editor, labels)

    def get_moderators(self) -> set[str]:
        """Moderator accounts, with the contract account always among them."""
        moderators = {
            member.name
            for member in self.members_list.get_moderators()
            if member.kind is MemberKind.ACCOUNT
        }
        moderators.add(self.env.current_account_id)
        return moderators

    def has_moderator(self, account_id: str) -> bool:
        return any(
            member.kind is MemberKind.ACCOUNT and member.name == account_id
            for member in self.members_list.get_moderators()
        )

    # Categories and labels

    def get_allowed_categories(self) -> list[str]:
        return list(self.proposal_categories)

    def set_allowed_categories(self, new_categories: Iterable[str]) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can set categories",
        )
        self.proposal_categories = list(new_categories)

    def get_global_labels(self) -> list[dict[str, Any]]:
        """Registered labels ordered by value."""
        return [
            {
                "value": value,
                "title": info.title,
                "color": list(info.color) if info.color is not None else None,
            }
            for value, info in sorted(self.global_labels_info.items())
        ]

    def set_global_labels(self, labels: Iterable[Mapping[str, Any]]) -> None:
        """Replace all global labels; each has a value, an optional title and color."""
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can set labels",
        )
        new_labels: dict[str, LabelInfo] = {}
        for label in labels:
            try:
                value = label["value"]
            except KeyError:
                raise ContractError("Label has no value") from None
            new_labels[value] = LabelInfo(
                title=label.get("title"), color=_check_color(label.get("color"))
            )
        self.global_labels_info = new_labels

    # Access control

    def get_access_control_info(self) -> dict[str, Any]:
        return {
            "rules_list": self.rules_list.to_json(),
            "members_list": self.members_list.to_json(),
        }

    def is_restricted_label(self, label: str) -> bool:
        return self.rules_list.is_restricted(label)

    def find_restricted_labels(self, labels: Iterable[str]) -> set[str]:
        return self.rules_list.find_restricted(labels)

    def set_restricted_rules(self, rules: RulesList) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can set restricted rules",
        )
        self.rules_list.set_restricted(rules)

    def unset_restricted_rules(self, rules: Iterable[Rule]) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can unset restricted rules",
        )
        self.rules_list.unset_restricted(rules)

    def get_root_members(self) -> dict[Member, MemberMetadata]:
        return self.members_list.get_root_members()

    def add_member(self, member: Member, metadata: MemberMetadata) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can add members",
        )
        self.members_list.add_member(member, metadata)

    def remove_member(self, member: Member) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can remove members",
        )
        self.members_list.remove_member(member)

    def edit_member(self, member: Member, metadata: MemberMetadata) -> None:
        _require(
            self._is_admin_or_moderator(),
            "Only the admin and moderators can edit members",
        )
        self.members_list.edit_member(member, metadata)