from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.exceptions import (
    AppError,
    ConfigurationError,
    ConflictError,
    InvalidStateError,
    MissingAssignmentError,
    NotFoundError,
    ValidationError,
)
from app.main import app_error_handler


def test_status_codes():
    assert ValidationError("bad").status_code == 400
    assert NotFoundError("Term", "t1").status_code == 404
    assert ConflictError("taken").status_code == 409
    assert InvalidStateError("published").status_code == 400
    assert ConfigurationError("nothing to do").status_code == 400
    assert MissingAssignmentError("c1", "s1").status_code == 409


def test_not_found_message_names_the_resource():
    error = NotFoundError("TimetableVersion", "v1")

    assert error.message == "TimetableVersion with id v1 not found"
    assert error.details == {"resource_type": "TimetableVersion"}
    assert NotFoundError("Term", message="No such term").message == "No such term"


def test_missing_assignment_is_a_configuration_error():
    error = MissingAssignmentError("class-9", "subject-3")

    assert isinstance(error, ConfigurationError)
    assert error.message == "Cannot generate: No teacher assigned to subject ID subject-3 in class ID class-9."
    assert error.details == {"class_id": "class-9", "subject_id": "subject-3"}


def test_handler_renders_message_and_details():
    error_app = FastAPI()
    error_app.add_exception_handler(AppError, app_error_handler)

    @error_app.get("/boom")
    def boom():
        raise ConflictError("Teacher is already booked.", details={"slot_id": "s1"})

    response = TestClient(error_app).get("/boom")

    assert response.status_code == 409
    assert response.json() == {"message": "Teacher is already booked.", "details": {"slot_id": "s1"}}
