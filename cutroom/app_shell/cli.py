import argparse
import logging
import sys
from uuid import UUID

from cutroom.adapters.clock import SystemClock
from cutroom.adapters.sqlite.migrator import SQLiteMigrator
from cutroom.adapters.sqlite.repos import SQLiteAssetRepo
from cutroom.api.deps import Settings
from cutroom.app_shell.config import configure_logging
from cutroom.domain.entities import PublicationRecord
from cutroom.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> int:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(settings.db_path, str(settings.migrations_dir))

    if args.status:
        pending = migrator.pending_migrations()
        for filename in pending:
            print(f"pending  {filename}")
        print(f"{len(pending)} pending migration(s).")
        return 0

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s).")
    return 0


def handle_reconcile(settings: Settings, args: argparse.Namespace) -> int:
    repo = SQLiteAssetRepo(settings.db_path)

    if args.release:
        repo.release_publish(UUID(args.release))
        print(f"Released publish claim on {args.release}.")
        return 0

    if args.record:
        asset_id, platform_id = UUID(args.record[0]), args.record[1]
        asset = repo.get_by_id(asset_id)
        if asset is None:
            logger.error("Asset %s not found.", asset_id)
            return 1
        publishing = load_rules(settings.rules_path).publishing
        record = PublicationRecord(
            platform_id=platform_id,
            title=(asset.title or publishing.default_title)[: publishing.max_title_chars],
            description=(asset.description or publishing.default_description)[
                : publishing.max_description_chars
            ],
            visibility=args.visibility or publishing.default_visibility,
            made_for_kids=False,
            published_at=SystemClock().now_utc(),
        )
        if not repo.record_publication(asset_id, record):
            logger.error("Asset %s already carries a platform id.", asset_id)
            return 1
        print(f"Recorded {platform_id} for {asset_id}.")
        return 0

    pending = repo.list_unreconciled()
    if not pending:
        print("No unreconciled publish attempts.")
        return 0
    for asset in pending:
        print(
            f"{asset.id}  workspace={asset.workspace_id}  "
            f"attempted={asset.publish_attempted_at}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="cutroom CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--status", action="store_true", help="List pending migrations without applying them"
    )

    # reconcile
    reconcile_parser = subparsers.add_parser(
        "reconcile", help="List publish attempts with no recorded platform id"
    )
    group = reconcile_parser.add_mutually_exclusive_group()
    group.add_argument("--release", metavar="ASSET_ID", help="Drop a stale publish claim")
    group.add_argument(
        "--record",
        nargs=2,
        metavar=("ASSET_ID", "PLATFORM_ID"),
        help="Record a platform id confirmed on the platform",
    )
    reconcile_parser.add_argument(
        "--visibility", choices=["public", "unlisted", "private"], help="Used with --record"
    )

    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)

    if args.command == "migrate":
        return handle_migrate(settings, args)
    elif args.command == "reconcile":
        return handle_reconcile(settings, args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
