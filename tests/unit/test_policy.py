from pathlib import Path
from uuid import uuid4

import pytest

from cutroom.domain.entities import Account, Asset, Workspace
from cutroom.domain.policy import PolicyEngine
from cutroom.rules.loader import load_rules


@pytest.fixture
def rules():
    return load_rules(Path("rules.yaml").resolve())


@pytest.fixture
def policy(rules):
    return PolicyEngine(rules)


@pytest.fixture
def producer():
    return Account(email="maker@example.com", role="producer")


@pytest.fixture
def delegate():
    return Account(email="editor@example.com", role="delegate")


@pytest.fixture
def workspace(producer):
    return Workspace(name="Channel", owner_id=producer.id)


@pytest.fixture
def asset(workspace, producer, delegate):
    return Asset(
        workspace_id=workspace.id,
        uploaded_by=producer.id,
        assigned_to=delegate.id,
        original_ref="assets/raw.mp4",
    )


def test_rbac(policy, producer, delegate):
    assert policy.check_permission(producer, "asset:publish")
    assert not policy.check_permission(delegate, "asset:publish")
    assert policy.check_permission(delegate, "asset:edit")
    assert not policy.check_permission(None, "asset:edit")


def test_scoped_wildcard(rules, delegate):
    rules.rbac.roles["delegate"] = ["asset:*"]
    policy = PolicyEngine(rules)
    assert policy.check_permission(delegate, "asset:publish")
    assert not policy.check_permission(delegate, "workspace:create")


def test_owner_actions(policy, producer, workspace):
    assert policy.can_create_workspace(producer)
    assert policy.can_submit_original(producer, workspace)
    assert policy.can_decide(producer, workspace)
    assert policy.can_publish(producer, workspace)


def test_other_producer_is_not_owner(policy, workspace):
    other = Account(email="other@example.com", role="producer")
    assert not policy.can_decide(other, workspace)
    assert not policy.can_publish(other, workspace)
    assert not policy.can_submit_original(other, workspace)


def test_delegate_cannot_decide(policy, delegate, workspace):
    # Even as owner of record a delegate lacks the decide action.
    ws = Workspace(name="Odd", owner_id=delegate.id)
    assert not policy.can_decide(delegate, ws)
    assert not policy.can_create_workspace(delegate)
    assert not policy.can_decide(delegate, workspace)


def test_submit_edit_requires_assignee(policy, producer, delegate, asset):
    assert policy.can_submit_edit(delegate, asset)
    assert not policy.can_submit_edit(producer, asset)


def test_submit_edit_guard_switch(rules, producer, asset):
    rules.review.enforce_assignee_on_edit = False
    assert PolicyEngine(rules).can_submit_edit(producer, asset)


def test_view_asset(policy, producer, delegate, workspace, asset):
    assert policy.can_view_asset(producer, asset, workspace)
    assert policy.can_view_asset(delegate, asset, workspace)
    stranger = Account(email="x@example.com", role="delegate")
    assert not policy.can_view_asset(stranger, asset, workspace)
