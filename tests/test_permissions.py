import pytest

from storage_service.models import ProjectPermission


@pytest.mark.parametrize("level,view,edit,manage", [
    (ProjectPermission.VIEWER, True, False, False),
    (ProjectPermission.EDITOR, True, True, False),
    (ProjectPermission.OWNER, True, True, True),
])
def test_capabilities(level, view, edit, manage):
    assert level.can_view() is view
    assert level.can_edit() is edit
    assert level.can_manage() is manage


def test_levels_are_ordered():
    assert ProjectPermission.VIEWER.rank < ProjectPermission.EDITOR.rank < ProjectPermission.OWNER.rank
    assert ProjectPermission.OWNER.satisfies(ProjectPermission.EDITOR)
    assert ProjectPermission.EDITOR.satisfies(ProjectPermission.EDITOR)
    assert not ProjectPermission.VIEWER.satisfies(ProjectPermission.EDITOR)


@pytest.mark.parametrize("value", ["OWNER", "EDITOR", "VIEWER", ProjectPermission.VIEWER])
def test_is_valid_accepts_known_levels(value):
    assert ProjectPermission.is_valid(value)


@pytest.mark.parametrize("value", ["ADMIN", "owner", "", None, 3])
def test_is_valid_rejects_everything_else(value):
    assert not ProjectPermission.is_valid(value)
