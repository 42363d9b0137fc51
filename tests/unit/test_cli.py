from datetime import UTC, datetime

import pytest

from cutroom.adapters.sqlite.repos import SQLiteAccountRepo, SQLiteAssetRepo, SQLiteWorkspaceRepo
from cutroom.app_shell.cli import main
from cutroom.domain.entities import Account, Asset, Workspace


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("CUTROOM_DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def claimed_asset(data_dir):
    assert main(["migrate"]) == 0
    db = str(data_dir / "cutroom.db")
    owner = SQLiteAccountRepo(db).create(Account(email="maker@example.com", role="producer"))
    ws = SQLiteWorkspaceRepo(db).save(Workspace(name="Main", owner_id=owner.id))
    assets = SQLiteAssetRepo(db)
    asset = assets.save(
        Asset(
            workspace_id=ws.id,
            uploaded_by=owner.id,
            assigned_to=owner.id,
            original_ref="assets/a.mp4",
            title="Stuck upload",
            status="approved",
        )
    )
    assets.claim_publish(asset.id, datetime.now(UTC))
    return assets, asset


def test_migrate(data_dir, capsys):
    assert main(["migrate"]) == 0
    assert "Applied 1 migration(s)." in capsys.readouterr().out

    assert main(["migrate"]) == 0
    assert "Applied 0 migration(s)." in capsys.readouterr().out


def test_reconcile_lists_pending(claimed_asset, capsys):
    _, asset = claimed_asset
    assert main(["reconcile"]) == 0
    assert str(asset.id) in capsys.readouterr().out


def test_reconcile_release(claimed_asset):
    assets, asset = claimed_asset
    assert main(["reconcile", "--release", str(asset.id)]) == 0
    assert assets.list_unreconciled() == []


def test_reconcile_record(claimed_asset):
    assets, asset = claimed_asset
    assert main(["reconcile", "--record", str(asset.id), "yt-42", "--visibility", "unlisted"]) == 0

    stored = assets.get_by_id(asset.id)
    assert stored.platform_id == "yt-42"
    assert stored.published_title == "Stuck upload"
    assert stored.published_visibility == "unlisted"

    # Second record is refused
    assert main(["reconcile", "--record", str(asset.id), "yt-43"]) == 1


def test_reconcile_nothing_pending(data_dir, capsys):
    main(["migrate"])
    capsys.readouterr()
    assert main(["reconcile"]) == 0
    assert "No unreconciled" in capsys.readouterr().out


def test_migrate_status(data_dir, capsys):
    assert main(["migrate", "--status"]) == 0
    out = capsys.readouterr().out
    assert "pending  001_initial.sql" in out

    main(["migrate"])
    capsys.readouterr()
    main(["migrate", "--status"])
    assert "0 pending migration(s)." in capsys.readouterr().out
