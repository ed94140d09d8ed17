import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without a real server
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import slotforge.models  # noqa: F401
from slotforge.api.deps import get_db
from slotforge.db.base import Base
from slotforge.main import app
from slotforge.schemas.academic import (
    AcademicSnapshot,
    Batch,
    Faculty,
    FacultyDesignation,
    SubBatch,
    Subject,
    SubjectType,
)
from slotforge.schemas.infrastructure import Block, Classroom, Department, InfrastructureSnapshot, Lab
from slotforge.services.identity import SequentialIdentitySource
from slotforge.services.scheduler import generate_timetable


class CampusBuilder:
    """One block, one CSE department, a 60-seat classroom and two 30-seat labs."""

    def __init__(self):
        self.blocks = [Block(id="blk-1", name="Main Block")]
        self.departments = [Department(id="dept-cse", name="CSE", block_id="blk-1")]
        self.classrooms = [Classroom(id="room-1", name="CR-101", capacity=60, department_id="dept-cse")]
        self.labs = [
            Lab(id="lab-1", name="Lab 1", capacity=30, department_id="dept-cse"),
            Lab(id="lab-2", name="Lab 2", capacity=30, department_id="dept-cse"),
        ]
        self.batches = []
        self.subjects = []
        self.faculty = []

    def batch(self, batch_id="batch-1", students=30, semester=3, sub_batch_sizes=None, department_id="dept-cse"):
        sub_batches = []
        if sub_batch_sizes:
            sub_batches = [
                SubBatch(id=f"{batch_id}-A{index + 1}", name=f"A{index + 1}", student_count=size)
                for index, size in enumerate(sub_batch_sizes)
            ]
        batch = Batch(
            id=batch_id,
            name=batch_id.upper(),
            semester=semester,
            section="A",
            department_id=department_id,
            total_students=students,
            sub_batches=sub_batches,
        )
        self.batches.append(batch)
        return batch

    def subject(self, subject_id, subject_type, periods=3, semester=3, department_id="dept-cse"):
        subject = Subject(
            id=subject_id,
            name=subject_id.replace("-", " ").title(),
            code=subject_id.upper(),
            type=subject_type,
            periods_per_week=periods,
            department_id=department_id,
            semester=semester,
        )
        self.subjects.append(subject)
        return subject

    def teacher(self, faculty_id, designation=FacultyDesignation.assistant_professor, theory=(), labs=()):
        member = Faculty(
            id=faculty_id,
            name=f"Dr {faculty_id}",
            employee_id=faculty_id.upper(),
            designation=designation,
            department_id="dept-cse",
            assigned_theory_subjects=list(theory),
            assigned_lab_subjects=list(labs),
        )
        self.faculty.append(member)
        return member

    def with_two_labs(self):
        self.subject("lab-a", SubjectType.lab, periods=3)
        self.subject("lab-b", SubjectType.lab, periods=3)
        self.teacher("f-1", labs=["lab-a"])
        self.teacher("f-2", labs=["lab-b"])
        return self

    def infrastructure(self):
        return InfrastructureSnapshot(
            blocks=self.blocks,
            departments=self.departments,
            classrooms=self.classrooms,
            labs=self.labs,
        )

    def academic(self):
        return AcademicSnapshot(batches=self.batches, subjects=self.subjects, faculty=self.faculty)

    def generate(self, batch_id="batch-1", **kwargs):
        kwargs.setdefault("identity", SequentialIdentitySource())
        return generate_timetable(self.infrastructure(), self.academic(), batch_id, **kwargs)

    def request_payload(self, batch_id="batch-1", persist=True):
        return {
            "infrastructure": self.infrastructure().model_dump(mode="json", by_alias=True),
            "academic": self.academic().model_dump(mode="json", by_alias=True),
            "batchId": batch_id,
            "persist": persist,
        }


@pytest.fixture()
def campus():
    return CampusBuilder()


@pytest.fixture()
def session_factory():
    engine = create_engine( #isolated in-memory DB shared by every session of the test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture() #test client
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
