"""Account creation and teardown for communities and their discussions.

The calls that the factory, community and discussions accounts make are
described as chains of promises; nothing is sent anywhere.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from devhub.community import ONE_NEAR, TGAS, is_valid_account_id

FULL_ACCESS_PUBLIC_KEY = "ed25519:4deBAvg1S4MF7qe9GBDJwDCGLyyXtJa73JnMXwyG9vsB"
COMMUNITY_INITIAL_BALANCE = 4 * ONE_NEAR
DISCUSSIONS_INITIAL_BALANCE = 2 * ONE_NEAR
WRITE_PERMISSION_DEPOSIT = 1 * ONE_NEAR
NEW_COMMUNITY_GAS = 50 * TGAS
NEW_DISCUSSIONS_GAS = 20 * TGAS
SOCIAL_DB_MAINNET = "social.near"
SOCIAL_DB_TESTNET = "v1.social08.testnet"
EMPTY_ARGS = b"{}"


class AccountError(ValueError):
    """Raised when an account call is not allowed or not well formed."""


@dataclass(frozen=True)
class CreateAccount:
    pass


@dataclass(frozen=True)
class AddFullAccessKey:
    public_key: str


@dataclass(frozen=True)
class Transfer:
    amount: int


@dataclass(frozen=True)
class DeployContract:
    code: bytes


@dataclass(frozen=True)
class FunctionCall:
    """A method call; ``gas`` of None means a share of the unused gas."""

    method: str
    args: bytes
    deposit: int
    gas: Optional[int]


@dataclass(frozen=True)
class DeleteAccount:
    beneficiary_id: str


Action = Union[CreateAccount, AddFullAccessKey, Transfer, DeployContract, FunctionCall, DeleteAccount]


def _encode(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), sort_keys=True).encode()


@dataclass
class Promise:
    """Actions on one receiver, optionally followed by further promises.

    Iterating a promise yields it and every promise chained after it, in order.
    """

    receiver_id: str
    actions: list[Action] = field(default_factory=list)
    next: Optional[Promise] = None

    def __post_init__(self) -> None:
        if not is_valid_account_id(self.receiver_id):
            raise AccountError(f"Invalid account id: {self.receiver_id!r}")

    def create_account(self) -> Promise:
        self.actions.append(CreateAccount())
        return self

    def add_full_access_key(self, public_key: str) -> Promise:
        self.actions.append(AddFullAccessKey(public_key))
        return self

    def transfer(self, amount: int) -> Promise:
        self.actions.append(Transfer(amount))
        return self

    def deploy_contract(self, code: bytes) -> Promise:
        self.actions.append(DeployContract(bytes(code)))
        return self

    def function_call(
        self, method: str, args: bytes, deposit: int = 0, gas: Optional[int] = None
    ) -> Promise:
        self.actions.append(FunctionCall(method, bytes(args), deposit, gas))
        return self

    def delete_account(self, beneficiary_id: str) -> Promise:
        self.actions.append(DeleteAccount(beneficiary_id))
        return self

    def then(self, other: Promise) -> Promise:
        """Run ``other`` after this chain has finished."""
        *_, tail = self
        tail.next = other
        return self

    def __iter__(self) -> Iterator[Promise]:
        promise: Optional[Promise] = self
        while promise is not None:
            yield promise
            promise = promise.next


def parent_account(account_id: str) -> Optional[str]:
    """The account one level up, or None for a top-level account."""
    _, dot, parent = account_id.partition(".")
    return parent if dot else None


def _require_parent(account_id: str, message: str) -> str:
    parent = parent_account(account_id)
    if parent is None:
        raise AccountError(message)
    return parent


def social_db_account(current_account_id: str) -> str:
    """The social database used from the given account's network."""
    return SOCIAL_DB_TESTNET if current_account_id.endswith("testnet") else SOCIAL_DB_MAINNET


def social_db_set(
    current_account_id: str, data: Any, deposit: int = 0, gas: Optional[int] = None
) -> Promise:
    """A call that writes ``data`` to the social database."""
    return Promise(social_db_account(current_account_id)).function_call(
        "set", _encode({"data": data}), deposit, gas
    )


def _grant_write_permission(current_account_id: str, devhub_account: str) -> Promise:
    args = {"predecessor_id": devhub_account, "public_key": None, "keys": [current_account_id]}
    return Promise(social_db_account(current_account_id)).function_call(
        "grant_write_permission", _encode(args), WRITE_PERMISSION_DEPOSIT, None
    )


def factory_create_community_account(
    current_account_id: str,
    predecessor_id: str,
    attached_deposit: int,
    community: str,
    code: bytes,
) -> Promise:
    """Create, fund and deploy a community account, then follow it."""
    parent = _require_parent(
        current_account_id, "Community factory should be deployed on a child account"
    )
    if predecessor_id != parent:
        raise AccountError("Can only be called from parent contract")
    if attached_deposit < COMMUNITY_INITIAL_BALANCE:
        raise AccountError("Require 4 NEAR to create community account")

    community_account_id = f"{community}.{current_account_id}"
    return (
        Promise(community_account_id)
        .create_account()
        .add_full_access_key(FULL_ACCESS_PUBLIC_KEY)
        .transfer(COMMUNITY_INITIAL_BALANCE)
        .deploy_contract(code)
        .function_call("new", EMPTY_ARGS, 0, NEW_COMMUNITY_GAS)
        .then(factory_subscribe(current_account_id, community_account_id, attached_deposit))
    )


def factory_subscribe(
    current_account_id: str, community_account_id: str, attached_deposit: int
) -> Promise:
    """Make the factory follow a community and its discussions account."""
    discussions_account_id = f"discussions.{community_account_id}"
    if not is_valid_account_id(discussions_account_id):
        raise AccountError(f"Invalid account id: {discussions_account_id!r}")
    index = [
        {"key": "follow", "value": {"type": "follow", "accountId": community_account_id}},
        {"key": "follow", "value": {"type": "follow", "accountId": discussions_account_id}},
    ]
    data = {
        current_account_id: {
            "graph": {"follow": {community_account_id: "", discussions_account_id: ""}},
            "index": {"graph": _encode(index).decode()},
        }
    }
    return social_db_set(current_account_id, data, attached_deposit)


def community_devhub_account(current_account_id: str) -> str:
    """The hub account two levels above a community account."""
    factory = _require_parent(
        current_account_id, "Community contract should be deployed on a child account"
    )
    return _require_parent(factory, "Community factory should be deployed on a child account")


def discussions_devhub_account(current_account_id: str) -> str:
    """The hub account three levels above a discussions account."""
    community = _require_parent(
        current_account_id, "Discussions contract should be deployed on a child account"
    )
    factory = _require_parent(
        community, "Community contract should be deployed on a child account"
    )
    return _require_parent(factory, "Community factory should be deployed on a child account")


def community_new(current_account_id: str, code: bytes) -> Promise:
    """Let the hub write for the community, then create its discussions account."""
    devhub = community_devhub_account(current_account_id)
    return _grant_write_permission(current_account_id, devhub).then(
        community_create_discussions_account(current_account_id, code)
    )


def community_create_discussions_account(current_account_id: str, code: bytes) -> Promise:
    return (
        Promise(f"discussions.{current_account_id}")
        .create_account()
        .add_full_access_key(FULL_ACCESS_PUBLIC_KEY)
        .transfer(DISCUSSIONS_INITIAL_BALANCE)
        .deploy_contract(code)
        .function_call("new", EMPTY_ARGS, 0, NEW_DISCUSSIONS_GAS)
    )


def discussions_new(current_account_id: str) -> Promise:
    """Let the hub write for the discussions account."""
    return _grant_write_permission(
        current_account_id, discussions_devhub_account(current_account_id)
    )


def destroy(current_account_id: str, predecessor_id: str, devhub_account: str) -> Promise:
    """Delete the account, sending what remains to the hub."""
    if predecessor_id != devhub_account:
        raise AccountError("Can only destroy community account from DevHub contract")
    return Promise(current_account_id).delete_account(devhub_account)