import pytest

from app.core.exceptions import ValidationError
from app.utils.name_validation import CreationNamePolicy, FileRenamePolicy, RenameNamePolicy


@pytest.mark.parametrize("name", ["A", "Area 1", "Sub A", "x" * 34, "Citizens Charter 2024"])
def test_creation_policy_accepts_valid_names(name):
    assert CreationNamePolicy.validate(name) == name


@pytest.mark.parametrize("name", ["", None, "x" * 35, "Area-1", "Area_1", "Café", "a/b", "line\n"])
def test_creation_policy_rejects_invalid_names(name):
    with pytest.raises(ValidationError):
        CreationNamePolicy.validate(name)


def test_rename_policy_is_stricter_than_creation():
    name = "x" * 30

    assert CreationNamePolicy.validate(name) == name
    with pytest.raises(ValidationError, match="24 characters"):
        RenameNamePolicy.validate(name)


def test_rename_policy_boundary():
    assert RenameNamePolicy.validate("x" * 24) == "x" * 24
    with pytest.raises(ValidationError):
        RenameNamePolicy.validate("x" * 25)


def test_file_rename_policy_has_no_length_cap():
    name = "Quarterly report " * 10
    assert FileRenamePolicy.validate(name) == name


def test_file_rename_policy_checks_characters():
    with pytest.raises(ValidationError):
        FileRenamePolicy.validate("report.pdf")
