from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import get_mongo_db_name, get_mongo_uri


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - ping 으로 연결을 검증한다.
    - 사용할 DB 이름을 결정하지 못하면 에러를 발생시킨다.
    - 포인트/쿠폰 컬렉션에 필요한 인덱스를 한 번만 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        uri = get_mongo_uri()
        client = MongoClient(uri, tz_aware=True)

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        # MONGO_DB_NAME 우선, 없으면 URI의 기본 DB 사용
        db_name = get_mongo_db_name()
        try:
            if db_name:
                db = client[db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        _client = client
        _db = db

        try:
            _ensure_indexes(_db)
        except Exception as exc:  # noqa: BLE001
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            raise

        safe_db = cast(Database, _db)
        logger.info("MongoDB connected and indexes ensured (db=%s)", safe_db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    global _db

    if _db is None:
        get_client()
    assert _db is not None
    return _db


def _ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다.

    중복 생성해도 MongoDB 가 처리하므로 idempotent 하다.
    트랜잭션 안에서는 컬렉션을 암묵적으로 만들 수 없으므로 여기서 미리 생성된다.
    """

    students = db["students"]
    students.create_index(
        [("grade", ASCENDING), ("class_number", ASCENDING), ("number", ASCENDING)],
        name="idx_grade_class_number",
    )

    point_history = db["point_history"]
    point_history.create_index(
        [("student_id", ASCENDING), ("created_at", DESCENDING)],
        name="idx_student_created_at_desc",
    )
    point_history.create_index(
        [("created_at", DESCENDING), ("_id", DESCENDING)],
        name="idx_created_at_id_desc",
    )

    shop_items = db["shop_items"]
    shop_items.create_index(
        [("is_active", ASCENDING), ("created_at", DESCENDING)],
        name="idx_active_created_at",
    )

    coupons = db["coupons"]
    # 만료 스윕: status in (unused, pending) AND expires_at < now
    coupons.create_index(
        [("status", ASCENDING), ("expires_at", ASCENDING)],
        name="idx_status_expires_at",
    )
    coupons.create_index(
        [("student_id", ASCENDING), ("purchased_at", DESCENDING)],
        name="idx_student_purchased_at_desc",
    )
