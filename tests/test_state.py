import pytest

from devhub.changelog import ChangeLogType
from devhub.members import ActionType, Member, MemberError, MemberMetadata
from devhub.rules import Rule, RuleMetadata, RulesList
from devhub.state import ContractBase, ContractError, Environment, LabelInfo

HUB = "devhub.near"
MODERATORS = Member.team("moderators")


def make_contract() -> ContractBase:
    contract = ContractBase(Environment(HUB), proposal_categories=["Marketing"])
    contract.add_member(
        MODERATORS,
        MemberMetadata(
            description="Moderators",
            permissions={
                Rule.starts_with("wg-"): {ActionType.EDIT_POST, ActionType.USE_LABELS}
            },
        ),
    )
    contract.add_member(Member.account("max.near"), MemberMetadata(parents={MODERATORS}))
    contract.set_restricted_rules(
        RulesList(
            {
                Rule.starts_with("wg-"): RuleMetadata("WG only"),
                Rule.exact("funding"): RuleMetadata("Funding only"),
            }
        )
    )
    return contract


def test_environment_defaults_caller_to_contract():
    env = Environment("bob.near")
    assert env.predecessor_account_id == "bob.near"


def test_change_log_keeps_last_fifty():
    contract = ContractBase(Environment(HUB))
    for height in range(1, 56):
        contract.env.block_height = height
        contract.add_change_log(ChangeLogType("Proposal", height))
    log = contract.get_change_log()
    assert len(log) == 50
    assert log[0].block_id == 6
    assert log[-1].change_log_type == ChangeLogType("Proposal", 55)


def test_change_log_since_is_strict():
    contract = ContractBase(Environment(HUB))
    for height in (10, 20, 30):
        contract.env.block_height = height
        contract.add_change_log(ChangeLogType("RFP", height))
    assert [entry.block_id for entry in contract.get_change_log_since(20)] == [30]


def test_moderators_include_contract_account():
    contract = make_contract()
    assert contract.get_moderators() == {"max.near", HUB}
    assert contract.has_moderator("max.near")
    assert not contract.has_moderator("random.near")


def test_write_rfps_permission():
    contract = make_contract()
    assert contract.is_allowed_to_write_rfps(HUB)
    assert contract.is_allowed_to_write_rfps("max.near")
    assert not contract.is_allowed_to_write_rfps("random.near")


def test_use_labels():
    contract = make_contract()
    assert contract.is_allowed_to_use_labels("random.near", ["open"])
    assert not contract.is_allowed_to_use_labels("random.near", ["wg-protocol"])
    assert contract.is_allowed_to_use_labels("max.near", ["wg-protocol"])
    assert not contract.is_allowed_to_use_labels("max.near", ["funding"])
    assert contract.is_allowed_to_use_labels(HUB, ["funding"])


def test_use_labels_defaults_to_caller():
    contract = make_contract()
    contract.env.predecessor_account_id = "random.near"
    assert not contract.is_allowed_to_use_labels(None, ["funding"])


def test_categories_require_moderator():
    contract = make_contract()
    contract.env.predecessor_account_id = "random.near"
    with pytest.raises(ContractError, match="set categories"):
        contract.set_allowed_categories(["Other"])
    contract.env.predecessor_account_id = "max.near"
    contract.set_allowed_categories(["Other", "Marketing"])
    assert contract.get_allowed_categories() == ["Other", "Marketing"]


def test_global_labels_sorted_and_replaced():
    contract = make_contract()
    contract.set_global_labels(
        [
            {"value": "zeta", "title": "Zeta", "color": (1, 2, 3)},
            {"value": "alpha", "title": None, "color": None},
        ]
    )
    assert [label["value"] for label in contract.get_global_labels()] == ["alpha", "zeta"]
    assert contract.global_labels_info["zeta"] == LabelInfo("Zeta", (1, 2, 3))
    contract.set_global_labels([{"value": "beta"}])
    assert [label["value"] for label in contract.get_global_labels()] == ["beta"]


def test_global_labels_reject_bad_color_and_stranger():
    contract = make_contract()
    with pytest.raises(ContractError):
        contract.set_global_labels([{"value": "x", "color": (256, 0, 0)}])
    contract.env.predecessor_account_id = "random.near"
    with pytest.raises(ContractError, match="set labels"):
        contract.set_global_labels([])


def test_restricted_rules():
    contract = make_contract()
    assert contract.is_restricted_label("wg-tools")
    assert contract.find_restricted_labels(["wg-a", "funding", "open"]) == {"wg-a", "funding"}
    contract.unset_restricted_rules([Rule.exact("funding")])
    assert not contract.is_restricted_label("funding")


def test_access_control_info_round_trip():
    contract = make_contract()
    info = contract.get_access_control_info()
    assert info["rules_list"]["starts-with:wg-"]["description"] == "WG only"
    assert RulesList.from_json(info["rules_list"]) == contract.rules_list
    assert info["members_list"]["team:moderators"]["children"] == ["max.near"]


def test_member_changes_require_moderator():
    contract = make_contract()
    contract.env.predecessor_account_id = "random.near"
    with pytest.raises(ContractError, match="add members"):
        contract.add_member(Member.account("bob.near"), MemberMetadata())
    with pytest.raises(ContractError, match="remove members"):
        contract.remove_member(Member.account("max.near"))
    with pytest.raises(ContractError, match="edit members"):
        contract.edit_member(Member.account("max.near"), MemberMetadata())


def test_edit_and_remove_member():
    contract = make_contract()
    contract.edit_member(Member.account("max.near"), MemberMetadata(description="solo"))
    assert not contract.has_moderator("max.near")
    assert set(contract.get_root_members()) == {MODERATORS, Member.account("max.near")}
    contract.remove_member(Member.account("max.near"))
    with pytest.raises(MemberError):
        contract.remove_member(Member.account("max.near"))