"""Members, teams and the permissions they hold over labelled content."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

from devhub.community import is_valid_account_id
from devhub.rules import Rule

TEAM_PREFIX = "team:"
MEMBER_METADATA_VERSION = "V0"
MODERATORS_TEAM = "moderators"


class MemberError(ValueError):
    """Raised when the members list cannot be changed or read as asked."""


class MemberKind(Enum):
    ACCOUNT = "account"
    TEAM = "team"


@dataclass(frozen=True)
class Member:
    """An account or a team.

    Its string form is the account name, or ``team:<name>`` for a team.
    Account names cannot hold ``:``, so the two forms never collide.
    """

    kind: MemberKind
    name: str

    @classmethod
    def account(cls, name: str) -> Member:
        if not is_valid_account_id(name):
            raise MemberError(f"Invalid account id: {name!r}")
        return cls(MemberKind.ACCOUNT, name)

    @classmethod
    def team(cls, name: str) -> Member:
        return cls(MemberKind.TEAM, name)

    @classmethod
    def from_str(cls, text: str) -> Member:
        """Parse the string form of a member."""
        if text.startswith(TEAM_PREFIX):
            return cls.team(text[len(TEAM_PREFIX):])
        return cls.account(text)

    def __str__(self) -> str:
        if self.kind is MemberKind.TEAM:
            return f"{TEAM_PREFIX}{self.name}"
        return self.name


class ActionType(Enum):
    """What a member may do with content that carries matching labels."""

    EDIT_POST = "edit-post"
    USE_LABELS = "use-labels"


def _members_from_json(values: Iterable[str]) -> set[Member]:
    return {Member.from_str(value) for value in values}


@dataclass
class MemberMetadata:
    description: str = ""
    permissions: dict[Rule, set[ActionType]] = field(default_factory=dict)
    children: set[Member] = field(default_factory=set)
    parents: set[Member] = field(default_factory=set)

    def to_json(self) -> dict:
        return {
            "member_metadata_version": MEMBER_METADATA_VERSION,
            "description": self.description,
            "permissions": {
                str(rule): sorted(action.value for action in actions)
                for rule, actions in self.permissions.items()
            },
            "children": sorted(str(member) for member in self.children),
            "parents": sorted(str(member) for member in self.parents),
        }

    @classmethod
    def from_json(cls, data: Mapping) -> MemberMetadata:
        version = data.get("member_metadata_version")
        if version != MEMBER_METADATA_VERSION:
            raise MemberError(f"Unknown member metadata version: {version!r}")
        try:
            permissions = {
                Rule.from_str(rule): {ActionType(action) for action in actions}
                for rule, actions in data.get("permissions", {}).items()
            }
        except ValueError as exc:
            raise MemberError(f"Invalid permissions: {exc}") from None
        return cls(
            description=data.get("description", ""),
            permissions=permissions,
            children=_members_from_json(data.get("children", ())),
            parents=_members_from_json(data.get("parents", ())),
        )

    def _copy(self) -> MemberMetadata:
        return replace(
            self,
            permissions={rule: set(actions) for rule, actions in self.permissions.items()},
            children=set(self.children),
            parents=set(self.parents),
        )


def _insert(members: dict[Member, MemberMetadata], member: Member, metadata: MemberMetadata) -> None:
    if member in members:
        raise MemberError("Member already exists")
    members[member] = metadata

    for child in metadata.children:
        existing = members.get(child)
        if existing is None:
            raise MemberError(f"Member declares a child {child} that does not exist")
        if member in existing.parents:
            raise MemberError("Child already had this parent")
        members[child] = replace(existing, parents=existing.parents | {member})

    for parent in metadata.parents:
        existing = members.get(parent)
        if existing is None:
            raise MemberError(f"Member declares a parent {parent} that does not exist")
        if member in existing.children:
            raise MemberError("Parent already had this child")
        members[parent] = replace(existing, children=existing.children | {member})


def _delete(members: dict[Member, MemberMetadata], member: Member) -> None:
    if member not in members:
        raise MemberError("Member does not exist")
    metadata = members.pop(member)

    for child in metadata.children:
        existing = members.get(child)
        if existing is None:
            raise MemberError(f"Member declares a child {child} that does not exist")
        if member not in existing.parents:
            raise MemberError("Child did not have this parent.")
        members[child] = replace(existing, parents=existing.parents - {member})

    for parent in metadata.parents:
        existing = members.get(parent)
        if existing is None:
            raise MemberError(f"Member declares a parent {parent} that does not exist")
        if member not in existing.children:
            raise MemberError("Parent did not have this child.")
        members[parent] = replace(existing, children=existing.children - {member})


@dataclass
class MembersList:
    """All members with their metadata; links between them are kept both ways.

    Every change is all or nothing: when it fails, the list is left as it was.
    """

    members: dict[Member, MemberMetadata] = field(default_factory=dict)

    def get_root_members(self) -> dict[Member, MemberMetadata]:
        """Members that do not belong to any team."""
        return {member: meta for member, meta in self.members.items() if not meta.parents}

    def check_permissions(self, account: str, labels: Iterable[str]) -> set[ActionType]:
        """Actions the account may take on content with the given labels.

        Permissions are inherited from every team the account belongs to,
        directly or through other teams.
        """
        start = Member.account(account)
        if start not in self.members:
            return set()

        labels = list(labels)
        permissions: set[ActionType] = set()
        pending = {start}
        seen: set[Member] = set()
        while pending:
            member = pending.pop()
            seen.add(member)
            metadata = self.members.get(member)
            if metadata is None:
                raise MemberError(f"Metadata not found for {member}")
            for rule, actions in metadata.permissions.items():
                if rule.applies_to_any(labels):
                    permissions |= actions
            pending |= metadata.parents - seen
        return permissions

    def add_member(self, member: Member, metadata: MemberMetadata) -> None:
        members = dict(self.members)
        _insert(members, member, metadata._copy())
        self.members = members

    def remove_member(self, member: Member) -> None:
        members = dict(self.members)
        _delete(members, member)
        self.members = members

    def edit_member(self, member: Member, metadata: MemberMetadata) -> None:
        members = dict(self.members)
        _delete(members, member)
        _insert(members, member, metadata._copy())
        self.members = members

    def get_moderators(self) -> set[Member]:
        team = self.members.get(Member.team(MODERATORS_TEAM))
        return set(team.children) if team is not None else set()

    def to_json(self) -> dict:
        return {str(member): metadata.to_json() for member, metadata in self.members.items()}

    @classmethod
    def from_json(cls, data: Mapping) -> MembersList:
        return cls(
            {Member.from_str(key): MemberMetadata.from_json(value) for key, value in data.items()}
        )