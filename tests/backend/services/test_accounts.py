from datetime import date

import pytest

from backend.auth.jwt_handler import decode_access_token
from backend.auth.passwords import hash_password, verify_password
from backend.core.errors import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from backend.core.requester import ROLE_ADMIN
from backend.services import accounts
from backend.services.storage import AvatarStore
from conftest import as_requester

PASSWORD = 'Secret123!'


def test_register_creates_student_and_token(db) -> None:
    user, token = accounts.register(db, name=' Jane Smith ', email='Jane@Example.com', password=PASSWORD)

    assert user.name == 'Jane Smith'
    assert user.email == 'jane@example.com'
    assert user.role == 'student'
    assert user.is_blocked is False
    assert verify_password(PASSWORD, user.password_hash)

    claims = decode_access_token(token)
    assert claims['sub'] == str(user.id)
    assert claims['role'] == 'student'


def test_register_rejects_duplicate_email_in_any_case(db) -> None:
    accounts.register(db, name='Jane Smith', email='jane@example.com', password=PASSWORD)

    with pytest.raises(ConflictError) as exc_info:
        accounts.register(db, name='Other Jane', email='JANE@example.com', password=PASSWORD)

    assert exc_info.value.message == 'User already exists'


@pytest.mark.parametrize(
    ('name', 'email', 'password', 'field'),
    [
        ('J', 'jane@example.com', PASSWORD, 'name'),
        ('Jane Smith', 'not-an-email', PASSWORD, 'email'),
        ('Jane Smith', 'jane@example.com', 'password', 'password'),
        ('Jane Smith', 'jane@example.com', 'Short1!', 'password'),
    ],
)
def test_register_validates_fields(db, name, email, password, field) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.register(db, name=name, email=email, password=password)

    assert field in exc_info.value.errors


def test_login_with_valid_and_invalid_credentials(db, make_user) -> None:
    student = make_user(email='student@example.com', password_hash=hash_password(PASSWORD))

    user, token = accounts.login(db, 'STUDENT@example.com', PASSWORD)
    assert user.id == student.id
    assert decode_access_token(token)['sub'] == str(student.id)

    with pytest.raises(UnauthorizedError) as exc_info:
        accounts.login(db, 'student@example.com', 'Wrong123!')
    assert exc_info.value.message == 'Invalid credentials'

    with pytest.raises(UnauthorizedError):
        accounts.login(db, 'nobody@example.com', PASSWORD)


def test_blocked_student_cannot_login(db, make_user) -> None:
    make_user(email='student@example.com', password_hash=hash_password(PASSWORD), is_blocked=True)

    with pytest.raises(ForbiddenError) as exc_info:
        accounts.login(db, 'student@example.com', PASSWORD)

    assert exc_info.value.message == 'Your account has been blocked'


def test_admin_login_only_accepts_admins(db, make_user) -> None:
    make_user(email='student@example.com', password_hash=hash_password(PASSWORD))
    admin = make_user(email='root@example.com', role=ROLE_ADMIN, password_hash=hash_password(PASSWORD))

    user, token = accounts.admin_login(db, 'root@example.com', PASSWORD)
    assert user.id == admin.id
    assert decode_access_token(token)['role'] == ROLE_ADMIN

    with pytest.raises(UnauthorizedError) as exc_info:
        accounts.admin_login(db, 'student@example.com', PASSWORD)
    assert exc_info.value.message == 'Invalid admin credentials'


def test_update_profile_applies_given_fields(db, make_user) -> None:
    student = make_user(name='Jane Smith', phone='1234567890')

    user = accounts.update_profile(
        db,
        as_requester(student),
        {'name': 'Jane Doe', 'date_of_birth': '2001-05-04', 'address': ' 1 Main St '},
    )

    assert user.name == 'Jane Doe'
    assert user.phone == '1234567890'
    assert user.date_of_birth == date(2001, 5, 4)
    assert user.address == '1 Main St'


def test_update_profile_rejects_bad_phone(db, make_user) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.update_profile(db, as_requester(make_user()), {'phone': '12345'})

    assert exc_info.value.errors == {'phone': 'Phone number must be 10 digits'}


def test_blocked_user_cannot_update_profile(db, make_user) -> None:
    with pytest.raises(ForbiddenError):
        accounts.update_profile(db, as_requester(make_user(is_blocked=True)), {'name': 'New Name'})


def test_change_password(db, make_user) -> None:
    student = make_user(password_hash=hash_password(PASSWORD))
    requester = as_requester(student)

    with pytest.raises(ValidationError) as exc_info:
        accounts.change_password(db, requester, current_password='Wrong123!', new_password='Another123!')
    assert 'current_password' in exc_info.value.errors

    accounts.change_password(db, requester, current_password=PASSWORD, new_password='Another123!')

    db.refresh(student)
    assert verify_password('Another123!', student.password_hash)
    assert not verify_password(PASSWORD, student.password_hash)


def test_replace_avatar_removes_previous_image(db, make_user, tmp_path) -> None:
    store = AvatarStore(tmp_path, 'http://testserver', max_bytes=1024)
    student = make_user()
    requester = as_requester(student)

    first_url = accounts.replace_avatar(db, requester, b'first', 'image/png', store=store)
    second_url = accounts.replace_avatar(db, requester, b'second', 'image/jpeg', store=store)

    db.refresh(student)
    assert student.profile_picture_url == second_url
    assert second_url.endswith('.jpg')
    assert not (tmp_path / 'avatars' / first_url.rsplit('/', 1)[1]).exists()
    assert (tmp_path / 'avatars' / second_url.rsplit('/', 1)[1]).read_bytes() == b'second'


def test_replace_avatar_keeps_old_image_when_upload_is_invalid(db, make_user, tmp_path) -> None:
    store = AvatarStore(tmp_path, 'http://testserver', max_bytes=1024)
    student = make_user()
    url = accounts.replace_avatar(db, as_requester(student), b'image', 'image/png', store=store)

    with pytest.raises(ValidationError):
        accounts.replace_avatar(db, as_requester(student), b'text', 'text/plain', store=store)

    db.refresh(student)
    assert student.profile_picture_url == url


def test_update_profile_clears_optional_fields_but_keeps_name(db, make_user) -> None:
    student = make_user(name='Jane Smith', phone='1234567890', address='1 Main St', date_of_birth=date(2001, 5, 4))

    user = accounts.update_profile(
        db,
        as_requester(student),
        {'name': None, 'phone': None, 'address': None, 'date_of_birth': None},
    )

    assert user.name == 'Jane Smith'
    assert user.phone is None
    assert user.address is None
    assert user.date_of_birth is None
