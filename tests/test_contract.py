import json
from dataclasses import replace

import pytest

from devhub.community import (
    CREATE_COMMUNITY_BALANCE,
    TGAS,
    AddOn,
    CommunityAddOn,
    CommunityInputs,
    ValidationError,
)
from devhub.contract import Contract
from devhub.members import Member, MemberMetadata
from devhub.state import ContractError, Environment


def fake_addon(addon_id):
    return AddOn(
        id=addon_id,
        title="GitHub AddOn",
        description="Current status of NEARCORE repo",
        view_widget="custom-viewer-widget",
        configurator_widget="github-configurator",
        icon="bi bi-github",
    )


def make_contract():
    env = Environment(
        current_account_id="bob.near",
        attached_deposit=CREATE_COMMUNITY_BALANCE,
        prepaid_gas=300 * TGAS,
    )
    return Contract(env=env)


def inputs(handle="webassembly"):
    return CommunityInputs(
        handle=handle,
        name="WebAssembly",
        tag="wasm",
        description="A community for wasm",
        logo_url="https://example.com/logo.png",
        banner_url="https://example.com/banner.png",
        bio_markdown="All about wasm",
    )


def with_moderator(contract, account="mod.near"):
    moderators = Member.team("moderators")
    contract.members_list.add_member(moderators, MemberMetadata())
    contract.members_list.add_member(
        Member.account(account), MemberMetadata(parents={moderators})
    )
    return contract


def args_of(promise):
    return json.loads(promise.actions[0].args)


def test_create_addon():
    contract = make_contract()
    addon = fake_addon("CommunityAddOnId")
    contract.create_addon(addon)
    assert contract.get_addon("CommunityAddOnId") == addon


def test_get_all_addons():
    contract = make_contract()
    addon = fake_addon("CommunityAddOnId")
    contract.create_addon(addon)
    assert contract.get_all_addons()[0] == addon


def test_get_addon_missing():
    contract = make_contract()
    assert contract.get_addon("unknown") is None


def test_update_addon():
    contract = make_contract()
    addon = fake_addon("test")
    contract.create_addon(addon)
    contract.update_addon(replace(addon, title="Telegram AddOn"))
    assert contract.get_all_addons()[0].title == "Telegram AddOn"


def test_create_addon_twice_fails():
    contract = make_contract()
    contract.create_addon(fake_addon("test"))
    with pytest.raises(ContractError, match="already exists"):
        contract.create_addon(fake_addon("test"))


def test_create_addon_invalid():
    contract = make_contract()
    with pytest.raises(ValidationError, match="Add-on id"):
        contract.create_addon(fake_addon("ab"))


def test_create_addon_by_stranger_fails():
    contract = make_contract()
    contract.env.predecessor_account_id = "alice.near"
    with pytest.raises(ContractError, match="create new add-ons"):
        contract.create_addon(fake_addon("test"))


def test_delete_addon():
    contract = make_contract()
    contract.create_addon(fake_addon("test"))
    contract.delete_addon("test")
    assert contract.get_all_addons() == []
    with pytest.raises(ContractError, match="does not exist"):
        contract.delete_addon("test")


def test_create_community():
    contract = make_contract()
    promise = contract.create_community(inputs())
    assert promise.receiver_id == "community.bob.near"
    assert promise.actions[0].method == "create_community_account"
    assert promise.actions[0].deposit == CREATE_COMMUNITY_BALANCE
    assert args_of(promise) == {"community": "webassembly"}
    community = contract.get_community("webassembly")
    assert community.admins == ["bob.near"]
    assert [a.id for a in community.addons] == ["announcements", "discussions"]


def test_create_community_errors():
    contract = make_contract()
    contract.create_community(inputs())
    with pytest.raises(ContractError, match="Community already exists"):
        contract.create_community(inputs())
    contract.env.attached_deposit = 0
    with pytest.raises(ContractError, match="Require 4 NEAR"):
        contract.create_community(inputs("other"))
    contract.env.attached_deposit = CREATE_COMMUNITY_BALANCE
    contract.env.prepaid_gas = 10 * TGAS
    with pytest.raises(ContractError, match="200 Tgas"):
        contract.create_community(inputs("other"))


def test_create_community_invalid_handle():
    contract = make_contract()
    with pytest.raises(ValidationError):
        contract.create_community(inputs("bad.handle"))
    assert contract.get_community("bad.handle") is None


def test_metadata_and_permissions():
    contract = with_moderator(make_contract())
    contract.create_community(inputs())
    metadata = contract.get_community_metadata("webassembly")
    assert metadata.name == "WebAssembly"
    assert metadata.admins == ["bob.near"]
    assert [m.handle for m in contract.get_all_communities_metadata()] == ["webassembly"]
    perms = contract.get_account_community_permissions("bob.near", "webassembly")
    assert (perms.can_configure, perms.can_delete) == (True, False)
    perms = contract.get_account_community_permissions("mod.near", "webassembly")
    assert (perms.can_configure, perms.can_delete) == (True, True)
    perms = contract.get_account_community_permissions("alice.near", "webassembly")
    assert (perms.can_configure, perms.can_delete) == (False, False)
    with pytest.raises(ContractError, match="does not exist"):
        contract.get_account_community_permissions("bob.near", "missing")


def test_update_community_publishes_profile():
    contract = make_contract()
    contract.create_community(inputs())
    community = contract.get_community("webassembly")
    community.name = "Wasm Hub"
    promise = contract.update_community("webassembly", community)
    assert promise.receiver_id == "social.near"
    data = args_of(promise)["data"]
    profile = data["webassembly.community.bob.near"]["profile"]
    assert profile["name"] == "Wasm Hub"
    assert profile["description"] == (
        "All about wasm\n\nLearn more about our community [on DevHub]"
        "(/devhub.near/widget/app?page=community&handle=webassembly)."
    )
    assert profile["tags"] == {"community": "", "announcements": "", "webassembly": ""}
    discussions = data["discussions.webassembly.community.bob.near"]["profile"]
    assert discussions["name"] == "Wasm Hub (Community Discussions)"
    assert contract.get_community("webassembly").name == "Wasm Hub"


def test_update_community_refusals():
    contract = make_contract()
    contract.create_community(inputs())
    community = contract.get_community("webassembly")
    community.handle = "renamed"
    with pytest.raises(ContractError, match="handle cannot be changed"):
        contract.update_community("webassembly", community)
    contract.env.predecessor_account_id = "alice.near"
    with pytest.raises(ContractError, match="configure communities"):
        contract.update_community("webassembly", contract.get_community("webassembly"))


def test_set_community_addon_replaces_and_appends():
    contract = make_contract()
    contract.create_community(inputs())
    replaced = CommunityAddOn("discussions", "discussions", "Talk", False, "{}")
    contract.set_community_addon("webassembly", replaced)
    extra = CommunityAddOn("wiki", "wiki", "Wiki", True, "")
    contract.set_community_addon("webassembly", extra)
    addons = contract.get_community_addons("webassembly")
    assert addons[1] == replaced
    assert addons[2] == extra
    assert len(addons) == 3


def test_set_community_addons():
    contract = make_contract()
    contract.create_community(inputs())
    contract.set_community_addons("webassembly", [])
    assert contract.get_community_addons("webassembly") == []
    with pytest.raises(ContractError, match="Community not found"):
        contract.get_community_addons("missing")


def test_set_community_socialdb():
    contract = make_contract()
    contract.create_community(inputs())
    promise = contract.set_community_socialdb("webassembly", {"x": 1})
    assert args_of(promise) == {"data": {"webassembly.community.bob.near": {"x": 1}}}


def test_create_discussion():
    contract = make_contract()
    contract.env.predecessor_account_id = "alice.near"
    promise = contract.create_discussion("webassembly", 42)
    index = args_of(promise)["data"]["discussions.webassembly.community.bob.near"]["index"]
    assert index["repost"] == (
        '[{"key":"main","value":{"type":"repost","item":{"type":"social",'
        '"path":"alice.near/post/main","blockHeight":42}}},{"key":{"type":"social",'
        '"path":"alice.near/post/main","blockHeight":42},"value":{"type":"repost"}}]'
    )
    assert index["notify"] == (
        '{"key":"alice.near","value":{"type":"repost","item":{"type":"social",'
        '"path":"alice.near/post/main","blockHeight":42}}}'
    )


def test_delete_community():
    contract = with_moderator(make_contract())
    contract.create_community(inputs())
    with pytest.raises(ContractError, match="Only moderators"):
        contract.delete_community("webassembly")
    contract.env.predecessor_account_id = "mod.near"
    promise = contract.delete_community("webassembly")
    assert promise.receiver_id == "webassembly.community.bob.near"
    assert promise.actions[0].method == "destroy"
    assert contract.get_community("webassembly") is None


def test_featured_communities():
    contract = with_moderator(make_contract())
    contract.create_community(inputs())
    contract.env.predecessor_account_id = "mod.near"
    with pytest.raises(ContractError, match="Community does not exist."):
        contract.set_featured_communities(["webassembly", "missing"])
    contract.set_featured_communities(["webassembly"])
    assert [c.handle for c in contract.get_featured_communities()] == ["webassembly"]


def test_set_social_db_profile_description():
    contract = make_contract()
    promise = contract.set_social_db_profile_description("Hello")
    assert args_of(promise) == {"data": {"bob.near": {"profile": {"description": "Hello"}}}}
    assert promise.actions[0].gas == 100 * TGAS
    contract.env.predecessor_account_id = "alice.near"
    with pytest.raises(ContractError, match="Permission denied"):
        contract.set_social_db_profile_description("Hello")