#!/usr/bin/env python3
# scripts/generate_qr_codes.py
"""
Regenerate stored QR codes from the command line.

    python scripts/generate_qr_codes.py                 # every asset
    python scripts/generate_qr_codes.py AST-001 AST-002 # selected assets

Useful after APP_BASE_URL changes, since the URL is part of every payload.
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from assettrack.core.config import Settings
from assettrack.db.session import create_db_engine, create_session_factory, session_scope, test_db_connection
from assettrack.models.asset import Asset
from assettrack.services.asset_store import SqlAlchemyAssetStore
from assettrack.services.qr_service import QRCodeService

BATCH_SIZE = 100


def main(asset_ids):
    settings = Settings()
    engine = create_db_engine(settings.DATABASE_URL)

    print("=" * 60)
    print("Regenerating QR codes")
    print("=" * 60)

    if not test_db_connection(engine):
        print("[ERROR] Database connection failed!")
        return 1

    failures = 0
    with session_scope(create_session_factory(engine)) as db:
        if not asset_ids:
            asset_ids = [row.asset_id for row in db.query(Asset.asset_id).order_by(Asset.id).all()]
        print(f"\n{len(asset_ids)} asset(s) to process")

        service = QRCodeService(SqlAlchemyAssetStore(db), settings)
        for start in range(0, len(asset_ids), BATCH_SIZE):
            batch = asset_ids[start:start + BATCH_SIZE]
            for result in service.generate_bulk_qr_codes(batch):
                if result.success:
                    print(f"[OK]    {result.asset_id} -> {result.asset_url}")
                else:
                    failures += 1
                    print(f"[ERROR] {result.asset_id}: {result.kind.value}: {result.error}")

    print("\n" + "=" * 60)
    print(f"Done: {len(asset_ids) - failures} succeeded, {failures} failed")
    print("=" * 60)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
