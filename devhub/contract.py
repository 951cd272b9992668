"""The hub contract: communities, add-ons and featured communities."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Optional

from devhub.accounts import Promise, social_db_set
from devhub.community import (
    CREATE_COMMUNITY_BALANCE,
    CREATE_COMMUNITY_GAS,
    CREATE_DISCUSSION_GAS,
    DELETE_COMMUNITY_GAS,
    SET_COMMUNITY_SOCIALDB_GAS,
    UPDATE_COMMUNITY_GAS,
    AddOn,
    Community,
    CommunityAddOn,
    CommunityInputs,
    CommunityMetadata,
    CommunityPermissions,
    FeaturedCommunity,
    get_devhub_community_account,
    get_devhub_community_factory,
    get_devhub_discussions_account,
)
from devhub.state import ContractBase, ContractError

_EMPTY_ARGS = b"{}"


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ContractError(message)


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _default_addons() -> list[CommunityAddOn]:
    return [
        CommunityAddOn(
            id="announcements",
            addon_id="announcements",
            display_name="Announcements",
            enabled=True,
            parameters="",
        ),
        CommunityAddOn(
            id="discussions",
            addon_id="discussions",
            display_name="Discussions",
            enabled=True,
            parameters="",
        ),
    ]


def _metadata_of(community: Community) -> CommunityMetadata:
    return CommunityMetadata(
        admins=list(community.admins),
        handle=community.handle,
        name=community.name,
        tag=community.tag,
        description=community.description,
        logo_url=community.logo_url,
        banner_url=community.banner_url,
        bio_markdown=community.bio_markdown,
    )


@dataclass
class Contract(ContractBase):
    """The hub contract with its communities and add-ons."""

    communities: dict[str, Community] = field(default_factory=dict)
    featured_communities: list[FeaturedCommunity] = field(default_factory=list)
    available_addons: dict[str, AddOn] = field(default_factory=dict)

    # Communities

    def create_community(self, inputs: CommunityInputs) -> Promise:
        """Register a community and ask the factory to create its account."""
        _require(self.get_community(inputs.handle) is None, "Community already exists")
        _require(
            self.env.attached_deposit >= CREATE_COMMUNITY_BALANCE,
            "Require 4 NEAR to create community",
        )
        _require(self.env.prepaid_gas >= CREATE_COMMUNITY_GAS, "Require at least 200 Tgas")

        community = Community(
            admins=[],
            handle=inputs.handle,
            name=inputs.name,
            tag=inputs.tag,
            description=inputs.description,
            logo_url=inputs.logo_url,
            banner_url=inputs.banner_url,
            bio_markdown=inputs.bio_markdown,
            addons=_default_addons(),
        )
        community.validate()
        community.set_default_admin(self.env.predecessor_account_id)
        self.communities[community.handle] = community

        factory = get_devhub_community_factory(self.env.current_account_id)
        args = _compact({"community": community.handle}).encode()
        return Promise(factory).function_call(
            "create_community_account", args, CREATE_COMMUNITY_BALANCE, None
        )

    def get_community(self, handle: str) -> Optional[Community]:
        community = self.communities.get(handle)
        return copy.deepcopy(community) if community is not None else None

    def get_community_metadata(self, handle: str) -> Optional[CommunityMetadata]:
        community = self.communities.get(handle)
        return _metadata_of(community) if community is not None else None

    def get_account_community_permissions(
        self, account_id: str, community_handle: str
    ) -> CommunityPermissions:
        community = self.communities.get(community_handle)
        _require(
            community is not None,
            f"Community with handle `{community_handle}` does not exist",
        )
        is_moderator = self.has_moderator(account_id)
        return CommunityPermissions(
            can_configure=account_id in community.admins or is_moderator,
            can_delete=is_moderator,
        )

    def get_all_communities_metadata(self) -> list[CommunityMetadata]:
        return [_metadata_of(community) for community in self.communities.values()]

    def _existing_community(self, handle: str) -> Community:
        community = self.get_community(handle)
        _require(community is not None, f"Community not found with handle `{handle}`")
        return community

    def _require_editable(self, handle: str, message: str) -> None:
        permissions = self.get_account_community_permissions(
            self.env.predecessor_account_id, handle
        )
        _require(permissions.can_configure, message)

    def update_community(self, handle: str, community: Community) -> Promise:
        """Replace a community and publish its profiles to the social database."""
        self._require_editable(
            handle, "Only community admins and hub moderators can configure communities"
        )
        community = copy.deepcopy(community)
        community.validate()
        community.set_default_admin(self.env.predecessor_account_id)

        _require(community.handle == handle, "Community handle cannot be changed")
        _require(self.env.prepaid_gas >= UPDATE_COMMUNITY_GAS, "Require at least 30 Tgas")
        self.communities[handle] = community

        current = self.env.current_account_id
        page_link = f"/devhub.near/widget/app?page=community&handle={community.handle}"
        linktree = {
            "twitter": community.twitter_handle,
            "github": community.github_handle,
            "telegram": community.telegram_handle,
            "website": f"near.social{page_link}",
        }
        learn_more = f"\n\nLearn more about our community [on DevHub]({page_link})."
        bio = community.bio_markdown if community.bio_markdown is not None else community.description
        data = {
            get_devhub_community_account(community.handle, current): {
                "profile": {
                    "name": community.name,
                    "image": {"url": community.logo_url},
                    "linktree": dict(linktree),
                    "description": f"{bio}{learn_more}",
                    "backgroundImage": {"url": community.banner_url},
                    "tags": {"community": "", "announcements": "", community.handle: ""},
                }
            },
            get_devhub_discussions_account(community.handle, current): {
                "profile": {
                    "name": f"{community.name} (Community Discussions)",
                    "image": {"url": community.logo_url},
                    "linktree": dict(linktree),
                    "description": f"{community.description}{learn_more}",
                    "backgroundImage": {"url": community.banner_url},
                    "tags": {"community": "", "discussions": "", community.handle: ""},
                }
            },
        }
        return social_db_set(current, data)

    def set_community_socialdb(self, handle: str, data: Any) -> Promise:
        self._require_editable(
            handle, "Only community admins and hub moderators can set community Social DB"
        )
        _require(
            self.env.prepaid_gas >= SET_COMMUNITY_SOCIALDB_GAS, "Require at least 30 Tgas"
        )
        current = self.env.current_account_id
        return social_db_set(current, {get_devhub_community_account(handle, current): data})

    def create_discussion(self, handle: str, block_height: int) -> Promise:
        """Repost the caller's post into the community's discussions feed."""
        _require(self.env.prepaid_gas >= CREATE_DISCUSSION_GAS, "Require at least 30 Tgas")
        initiator = self.env.predecessor_account_id
        item = {
            "type": "social",
            "path": f"{initiator}/post/main",
            "blockHeight": block_height,
        }
        repost = _compact(
            [
                {"key": "main", "value": {"type": "repost", "item": item}},
                {"key": item, "value": {"type": "repost"}},
            ]
        )
        notify = _compact({"key": initiator, "value": {"type": "repost", "item": item}})
        current = self.env.current_account_id
        data = {
            get_devhub_discussions_account(handle, current): {
                "index": {"repost": repost, "notify": notify}
            }
        }
        return social_db_set(current, data)

    def delete_community(self, handle: str) -> Promise:
        _require(
            self.has_moderator(self.env.predecessor_account_id),
            "Only moderators can delete community",
        )
        _require(
            handle in self.communities, f"Community with handle `{handle}` does not exist"
        )
        _require(self.env.prepaid_gas >= DELETE_COMMUNITY_GAS, "Require at least 30 Tgas")
        community = self.communities.pop(handle)
        account = get_devhub_community_account(community.handle, self.env.current_account_id)
        return Promise(account).function_call("destroy", _EMPTY_ARGS, 0, None)

    def set_featured_communities(self, handles: list[str]) -> None:
        _require(
            self.has_moderator(self.env.predecessor_account_id),
            "Only moderators can add featured communities",
        )
        handles = list(handles)
        for handle in handles:
            _require(handle in self.communities, "Community does not exist.")
        self.featured_communities = [FeaturedCommunity(handle) for handle in handles]

    def get_featured_communities(self) -> list[Community]:
        return [
            copy.deepcopy(self.communities[featured.handle])
            for featured in self.featured_communities
            if featured.handle in self.communities
        ]

    # Add-ons

    def _require_admin_or_moderator(self, message: str) -> None:
        caller = self.env.predecessor_account_id
        _require(
            self.has_moderator(caller) or caller == self.env.current_account_id, message
        )

    def get_addon(self, addon_id: str) -> Optional[AddOn]:
        addon = self.available_addons.get(addon_id)
        return copy.deepcopy(addon) if addon is not None else None

    def get_all_addons(self) -> list[AddOn]:
        return [copy.deepcopy(addon) for addon in self.available_addons.values()]

    def create_addon(self, addon: AddOn) -> None:
        self._require_admin_or_moderator("Only the admin and moderators can create new add-ons")
        _require(addon.id not in self.available_addons, "Add-on with this id already exists")
        addon.validate()
        self.available_addons[addon.id] = copy.deepcopy(addon)

    def delete_addon(self, addon_id: str) -> None:
        self._require_admin_or_moderator("Only the admin and moderators can delete add-ons")
        _require(
            addon_id in self.available_addons,
            f"Add-on with id `{addon_id}` does not exist",
        )
        del self.available_addons[addon_id]

    def update_addon(self, addon: AddOn) -> None:
        self._require_admin_or_moderator("Only the admin and moderators can edit add-ons")
        self.available_addons[addon.id] = copy.deepcopy(addon)

    def get_community_addons(self, handle: str) -> list[CommunityAddOn]:
        return self._existing_community(handle).addons

    def set_community_addons(self, handle: str, addons: list[CommunityAddOn]) -> Promise:
        community = self._existing_community(handle)
        community.set_addons(addons)
        return self.update_community(handle, community)

    def set_community_addon(self, handle: str, community_addon: CommunityAddOn) -> Promise:
        """Add the add-on to the community, or replace the one with the same id."""
        community = self._existing_community(handle)
        for index, current in enumerate(community.addons):
            if current.id == community_addon.id:
                community.addons[index] = community_addon
                break
        else:
            community.add_addon(community_addon)
        return self.update_community(handle, community)

    # Profile

    def set_social_db_profile_description(self, description: str) -> Promise:
        editor = self.env.predecessor_account_id
        _require(
            editor == self.env.current_account_id or self.has_moderator(editor),
            "Permission denied",
        )
        current = self.env.current_account_id
        return social_db_set(
            current,
            {current: {"profile": {"description": description}}},
            self.env.attached_deposit,
            self.env.prepaid_gas // 3,
        )