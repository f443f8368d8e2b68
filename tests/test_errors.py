"""Test the engine exception hierarchy."""
from menuengine.core.errors import CatalogIntegrityError, EngineError, EvaluationError, ValidationError


def test_codes_and_serialisation():
    error = CatalogIntegrityError("Unknown option", {"option_id": "x"})
    assert isinstance(error, EngineError)
    assert str(error) == "Unknown option"
    assert error.to_dict() == {
        "code": "CATALOG_INTEGRITY",
        "message": "Unknown option",
        "details": {"option_id": "x"},
    }


def test_default_messages():
    assert EvaluationError().code == "EVALUATION_ERROR"
    assert ValidationError().details == {}
