from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.student import Student


class StudentDocument(BaseDocument):
    """MongoDB students 컬렉션 도큐먼트 모델."""

    name: str
    grade: int
    class_number: int
    number: int
    points: int = 0

    @classmethod
    def from_domain(cls, student: Student) -> "StudentDocument":
        data = build_document_data_from_domain(student)
        return cls.model_validate(data)

    def to_domain(self) -> Student:
        return Student(
            id=from_object_id(self.id),
            name=self.name,
            grade=self.grade,
            class_number=self.class_number,
            number=self.number,
            points=self.points,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
