# devhub

An in-memory model of a developer community hub. It covers communities and
their add-ons, label-based access control with members and teams, a bounded
change log of proposal and RFP activity, and the account set-up for each
community and its discussions feed. Calls that would reach other accounts
are returned as `Promise` chains that describe what would be sent.

## Install

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Modules

- `devhub.rules`: `Rule`, `RuleKind`, `RuleMetadata` and `RulesList`.
  A rule matches a label exactly (`wg-protocol`), by prefix
  (`starts-with:funding`) or matches any label (`*`). `RulesList` answers
  `is_restricted` and `find_restricted` and reads and writes its JSON form
  with `to_json` and `from_json`.
- `devhub.members`: `Member` (an account, or a team written `team:<name>`),
  `ActionType` (`edit-post`, `use-labels`), `MemberMetadata` and
  `MembersList`. Members are linked as parents and children, and the links
  are kept both ways. `check_permissions` collects the actions an account
  inherits through every team above it. `add_member`, `remove_member` and
  `edit_member` raise `MemberError` and leave the list unchanged when they
  fail. `get_moderators` returns the children of the `moderators` team.
- `devhub.community`: `Community`, `CommunityInputs`, `CommunityMetadata`,
  `AddOn`, `CommunityAddOn`, `FeaturedCommunity`, `CommunityPermissions`,
  `WikiPage` and `CommunityFeatureFlags`. `validate` raises
  `ValidationError` when a length or handle rule is broken.
  `is_valid_account_id` checks account names. `get_devhub_community_factory`,
  `get_devhub_community_account`, `get_devhub_discussions_factory` and
  `get_devhub_discussions_account` derive account names from a handle.
- `devhub.changelog`: `ChangeLogType`, `ChangeLog` and `ChangeLogQueue`.
  The queue is first-in first-out, keeps the latest 50 entries, and can
  return the entries recorded after a given block with `since`.
- `devhub.accounts`: `Promise` with its actions (`create_account`,
  `add_full_access_key`, `transfer`, `deploy_contract`, `function_call`,
  `delete_account`, `then`). Also the calls made by the factory, community
  and discussions accounts: `factory_create_community_account`,
  `factory_subscribe`, `community_new`,
  `community_create_discussions_account`, `discussions_new` and `destroy`.
  `social_db_set` writes to `social.near`, or to `v1.social08.testnet` from
  testnet accounts. Refused calls raise `AccountError`.
- `devhub.state`: `Environment` holds the current account, the caller,
  the block height and timestamp, the attached deposit and the prepaid gas.
  The caller defaults to the current account. `ContractBase` holds the
  change log, the proposal categories, the global labels (`LabelInfo`) and
  access control. Calls that are refused raise `ContractError`.
- `devhub.contract`: `Contract`, the hub itself. It handles community
  creation, update and deletion, community add-ons, the global add-on list,
  featured communities, discussion reposts and the profile description.

## Example

    from devhub.rules import Rule, RulesList, RuleMetadata

    rules = RulesList()
    rules.set_restricted(RulesList({Rule.starts_with("funding"): RuleMetadata("For funding team only")}))
    rules.is_restricted("funding-requested")        # True
    rules.find_restricted(["funding", "wg-tools"])  # {"funding"}

    from devhub.members import Member

    str(Member.from_str("team:moderators"))  # "team:moderators"
    str(Member.account("alice.near"))        # "alice.near"

    from devhub.community import AddOn, CommunityInputs
    from devhub.contract import Contract
    from devhub.state import Environment

    env = Environment("devhub.near", attached_deposit=4 * 10**24, prepaid_gas=300 * 10**12)
    hub = Contract(env)
    hub.create_addon(AddOn(
        id="github", title="GitHub AddOn", description="Repository status",
        icon="bi bi-github", view_widget="custom-viewer-widget",
        configurator_widget="github-configurator",
    ))
    promise = hub.create_community(CommunityInputs(
        handle="webassembly", name="WebAssembly", tag="wasm",
        description="Everything about wasm", logo_url="logo.png", banner_url="banner.png",
    ))
    promise.receiver_id  # "community.devhub.near"

## What it does not do

- It keeps all state in memory. Nothing is stored or loaded, and there is no
  upgrade path for data saved in earlier layouts.
- It sends nothing. Each `Promise` only describes calls and actions, and
  there is no network client, server or command-line tool.
- Proposals and RFPs appear only as ids in the change log. Creating, editing
  and listing them is not part of the package.