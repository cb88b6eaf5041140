"""멀티 도큐먼트 쓰기를 하나의 단위로 묶는 트랜잭션 러너.

Service 레이어는 ``run(callback)`` 만 알고, callback 은 전달받은 session 을
각 Repository 호출에 그대로 넘긴다. 트랜잭션이 꺼져 있으면 session 은 None 이다.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from pymongo.client_session import ClientSession
from pymongo.database import Database


logger = logging.getLogger(__name__)

T = TypeVar("T")


class MongoTransactionRunner:
    """ClientSession.with_transaction 기반 트랜잭션 러너.

    - enabled=True: callback 을 트랜잭션 안에서 실행한다. TransientTransactionError
      (쓰기 충돌 등)는 pymongo 가 callback 을 다시 실행하며 재시도한다.
    - enabled=False: 단일 노드 MongoDB 용. callback(None) 을 바로 실행하며,
      원자성이 보장되지 않으므로 호출자가 보상 쓰기를 수행해야 한다.
    """

    def __init__(self, database: Database, enabled: bool = True) -> None:
        self._db = database
        self._enabled = enabled

    @property
    def is_atomic(self) -> bool:
        return self._enabled

    def run(self, callback: Callable[[Optional[ClientSession]], T]) -> T:
        if not self._enabled:
            return callback(None)

        with self._db.client.start_session() as session:
            return session.with_transaction(callback)
