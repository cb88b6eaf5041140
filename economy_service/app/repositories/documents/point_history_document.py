"""포인트 내역 MongoDB 도큐먼트.

append-only 컬렉션이므로 insert 외의 쓰기는 하지 않는다.
"""

from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.point_history import PointHistoryEntry, PointSource, PointType


class PointHistoryDocument(BaseDocument):
    """MongoDB point_history 컬렉션 도큐먼트 모델."""

    student_id: str
    student_name: str
    type: str
    amount: int
    source: str
    description: str

    @classmethod
    def from_domain(cls, entry: PointHistoryEntry) -> "PointHistoryDocument":
        data = build_document_data_from_domain(entry)
        return cls.model_validate(data)

    def to_domain(self) -> PointHistoryEntry:
        return PointHistoryEntry(
            id=from_object_id(self.id),
            student_id=self.student_id,
            student_name=self.student_name,
            type=PointType(self.type),
            amount=self.amount,
            source=PointSource(self.source),
            description=self.description,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
