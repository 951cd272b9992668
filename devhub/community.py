"""Communities, add-ons and the account names derived from them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

ONE_NEAR = 10**24
TGAS = 10**12

CREATE_COMMUNITY_BALANCE = 4 * ONE_NEAR
CREATE_DISCUSSION_BALANCE = 2 * ONE_NEAR
CREATE_COMMUNITY_GAS = 200 * TGAS
UPDATE_COMMUNITY_GAS = 30 * TGAS
DELETE_COMMUNITY_GAS = 30 * TGAS
SET_COMMUNITY_SOCIALDB_GAS = 30 * TGAS
CREATE_DISCUSSION_GAS = 30 * TGAS

_ACCOUNT_ID = re.compile(r"(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+")
_MIN_ACCOUNT_LEN = 2
_MAX_ACCOUNT_LEN = 64


class ValidationError(ValueError):
    """Raised when a community, add-on or account name is not valid."""


def is_valid_account_id(account_id: str) -> bool:
    """Whether the text is a well-formed account name."""
    return (
        _MIN_ACCOUNT_LEN <= len(account_id) <= _MAX_ACCOUNT_LEN
        and _ACCOUNT_ID.fullmatch(account_id) is not None
    )


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def _length_between(text: str, low: int, high: int) -> bool:
    return low <= len(text) <= high


@dataclass(kw_only=True)
class CommunityInputs:
    handle: str
    name: str
    tag: str
    description: str
    logo_url: str
    banner_url: str
    bio_markdown: Optional[str] = None


@dataclass(kw_only=True)
class CommunityMetadata:
    admins: list[str] = field(default_factory=list)
    handle: str
    name: str
    tag: str
    description: str
    logo_url: str
    banner_url: str
    bio_markdown: Optional[str] = None


@dataclass
class CommunityFeatureFlags:
    telegram: bool
    github: bool
    board: bool
    wiki: bool


@dataclass
class WikiPage:
    name: str
    content_markdown: str


@dataclass
class CommunityAddOn:
    """An add-on as configured inside one community."""

    id: str
    addon_id: str
    display_name: str
    enabled: bool
    parameters: str


@dataclass
class AddOn:
    """An add-on available to all communities."""

    id: str
    title: str
    description: str
    icon: str
    view_widget: str
    configurator_widget: str

    def validate(self) -> None:
        _require(
            _length_between(self.id, 3, 120), "Add-on id must contain 3 to 120 characters"
        )
        _require(
            _length_between(self.title, 3, 120),
            "Add-on title must contain 3 to 120 characters",
        )
        _require(
            _length_between(self.description, 3, 120),
            "Add-on description must contain 3 to 120 characters",
        )
        _require(
            _length_between(self.view_widget, 6, 240),
            "Add-on viewer must contain 6 to 240 characters",
        )
        _require(
            _length_between(self.configurator_widget, 0, 240),
            "Add-on configurator must contain 0 to 240 characters",
        )
        _require(
            _length_between(self.icon, 6, 60), "Add-on icon must contain 6 to 60 characters"
        )


@dataclass(kw_only=True)
class Community:
    admins: list[str] = field(default_factory=list)
    handle: str
    name: str
    tag: str
    description: str
    logo_url: str
    banner_url: str
    bio_markdown: Optional[str] = None
    github_handle: Optional[str] = None
    telegram_handle: Optional[str] = None
    twitter_handle: Optional[str] = None
    website_url: Optional[str] = None
    addons: list[CommunityAddOn] = field(default_factory=list)

    def validate(self) -> None:
        _require(
            _length_between(self.handle, 3, 40),
            "Community handle must contain 3 to 40 characters",
        )
        _require(
            is_valid_account_id(self.handle) and "." not in self.handle,
            "Community handle should be lowercase alphanumeric symbols separated either by "
            "`_` or `-`, separators are not permitted to immediately follow each other, "
            "start or end with separators",
        )
        _require(
            _length_between(self.name, 3, 30), "Community name must contain 3 to 30 characters"
        )
        _require(
            _length_between(self.tag, 3, 30), "Community tag must contain 3 to 30 characters"
        )
        _require(
            _length_between(self.description, 6, 60),
            "Community description must contain 6 to 60 characters",
        )
        _require(
            self.bio_markdown is None or _length_between(self.bio_markdown, 3, 200),
            "Community bio must contain 3 to 200 characters",
        )

    def add_addon(self, addon_config: CommunityAddOn) -> None:
        self.addons.append(addon_config)

    def remove_addon(self, addon_to_remove: CommunityAddOn) -> None:
        """Remove every add-on equal to the given one."""
        self.addons = [addon for addon in self.addons if addon != addon_to_remove]

    def set_addons(self, addons: list[CommunityAddOn]) -> None:
        self.addons = list(addons)

    def set_default_admin(self, predecessor_account_id: str) -> None:
        """Make the caller the only admin when the community has none."""
        if not self.admins:
            self.admins = [predecessor_account_id]


@dataclass
class FeaturedCommunity:
    handle: str


@dataclass
class CommunityPermissions:
    can_configure: bool
    can_delete: bool


def _checked_account(account_id: str) -> str:
    if not is_valid_account_id(account_id):
        raise ValidationError(f"Invalid account id: {account_id!r}")
    return account_id


def get_devhub_community_factory(current_account_id: str) -> str:
    """Account of the factory that creates community accounts."""
    return _checked_account(f"community.{current_account_id}")


def get_devhub_community_account(handle: str, current_account_id: str) -> str:
    """Account that belongs to the community with the given handle."""
    return f"{handle}.{get_devhub_community_factory(current_account_id)}"


def get_devhub_discussions_factory(handle: str, current_account_id: str) -> str:
    """Account that creates the discussions account of a community."""
    return _checked_account(get_devhub_community_account(handle, current_account_id))


def get_devhub_discussions_account(handle: str, current_account_id: str) -> str:
    """Account that holds the discussions of a community."""
    return f"discussions.{get_devhub_community_account(handle, current_account_id)}"