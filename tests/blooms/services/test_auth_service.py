import pytest

from blooms.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError, UserNotFoundError
from blooms.models.user import User, UserRole, utcnow
from blooms.services.auth_service import (
    ACCOUNT_DEACTIVATED_MESSAGE,
    EMAIL_TAKEN_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    AuthService,
)


def test_register_creates_active_customer_and_returns_token(auth_service: AuthService, store, token_issuer) -> None:
    result = auth_service.register('A', 'a@x.com', 'secret123')

    assert result['user']['role'] == 'customer'
    assert result['user']['is_active'] is True
    assert result['user']['email'] == 'a@x.com'
    assert 'password' not in result['user']

    claims = token_issuer.decode(result['token'])
    assert claims['sub'] == str(result['user']['id'])
    assert claims['role'] == 'customer'

    stored = store.find_by_email('a@x.com')
    assert stored.password != 'secret123'
    assert auth_service.hasher.verify('secret123', stored.password)


def test_register_same_email_twice_conflicts_and_keeps_one_row(auth_service: AuthService, db_session) -> None:
    auth_service.register('A', 'a@x.com', 'secret123')

    with pytest.raises(ConflictError) as exception_info:
        auth_service.register('B', 'a@x.com', 'other-password')

    assert exception_info.value.message == 'User with this email already exists'
    users = db_session.query(User).filter(User.email == 'a@x.com').all()
    assert len(users) == 1
    assert users[0].name == 'A'


def test_register_race_past_existence_check_is_still_a_conflict(
    auth_service: AuthService,
    store,
    db_session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    auth_service.register('A', 'a@x.com', 'secret123')
    monkeypatch.setattr(store, 'exists_by_email', lambda email: False)

    with pytest.raises(ConflictError):
        auth_service.register('B', 'a@x.com', 'secret123')

    assert db_session.query(User).filter(User.email == 'a@x.com').count() == 1


def test_login_succeeds_and_updates_last_login(auth_service: AuthService, make_user, store) -> None:
    user = make_user(email='a@x.com', password='secret123')
    created_at = user.created_at
    before = utcnow()

    result = auth_service.login('a@x.com', 'secret123')

    assert result['token']
    refreshed = store.find_by_email('a@x.com')
    assert refreshed.last_login is not None
    assert refreshed.last_login >= before
    assert refreshed.created_at == created_at
    assert result['user']['last_login'] is not None
    assert 'password' not in result['user']


def test_login_wrong_password_matches_unknown_email(auth_service: AuthService, make_user) -> None:
    make_user(email='a@x.com', password='secret123')

    with pytest.raises(UnauthorizedError) as wrong_password:
        auth_service.login('a@x.com', 'wrong')
    with pytest.raises(UnauthorizedError) as unknown_email:
        auth_service.login('nobody@x.com', 'secret123')

    assert wrong_password.value.message == unknown_email.value.message == INVALID_CREDENTIALS_MESSAGE
    assert wrong_password.value.status_code == unknown_email.value.status_code == 401


def test_login_inactive_user_with_correct_password_gets_distinct_message(auth_service: AuthService, make_user) -> None:
    make_user(email='a@x.com', password='secret123', is_active=False)

    with pytest.raises(UnauthorizedError) as exception_info:
        auth_service.login('a@x.com', 'secret123')

    assert exception_info.value.message == ACCOUNT_DEACTIVATED_MESSAGE
    assert exception_info.value.message != INVALID_CREDENTIALS_MESSAGE


def test_login_inactive_user_with_wrong_password_does_not_reveal_state(auth_service: AuthService, make_user, store) -> None:
    make_user(email='a@x.com', password='secret123', is_active=False)

    with pytest.raises(UnauthorizedError) as exception_info:
        auth_service.login('a@x.com', 'wrong')

    assert exception_info.value.message == INVALID_CREDENTIALS_MESSAGE
    assert store.find_by_email('a@x.com').last_login is None


def test_login_is_case_sensitive_on_email(auth_service: AuthService, make_user) -> None:
    make_user(email='a@x.com', password='secret123')

    with pytest.raises(UnauthorizedError):
        auth_service.login('A@x.com', 'secret123')


def test_get_current_user_is_redacted_projection(auth_service: AuthService, make_user) -> None:
    user = make_user(email='a@x.com', name='A')

    view = auth_service.get_current_user(user)

    assert view['id'] == user.id
    assert view['name'] == 'A'
    assert 'password' not in view


def test_refresh_reissues_token_for_same_subject(auth_service: AuthService, token_issuer) -> None:
    claims = token_issuer.decode(token_issuer.issue(3, 'a@x.com', 'admin'))

    result = auth_service.refresh(claims)
    new_claims = token_issuer.decode(result['token'])

    assert new_claims['sub'] == '3'
    assert new_claims['email'] == 'a@x.com'
    assert new_claims['role'] == 'admin'


def test_set_active_deactivates_customer(auth_service: AuthService, make_user, store) -> None:
    admin = make_user(email='admin@buneko.com', role=UserRole.admin)
    customer = make_user(email='a@x.com')

    view = auth_service.set_active(admin, customer.id, False)

    assert view['is_active'] is False
    assert store.get_by_id(customer.id).is_active is False


def test_set_active_rejects_own_account(auth_service: AuthService, make_user) -> None:
    admin = make_user(email='admin@buneko.com', role=UserRole.admin)

    with pytest.raises(ForbiddenError):
        auth_service.set_active(admin, admin.id, False)


def test_set_active_admin_cannot_touch_peer_admin(auth_service: AuthService, make_user) -> None:
    admin = make_user(email='admin@buneko.com', role=UserRole.admin)
    peer = make_user(email='peer@buneko.com', role=UserRole.admin)

    with pytest.raises(ForbiddenError):
        auth_service.set_active(admin, peer.id, False)


def test_set_active_superadmin_can_deactivate_admin(auth_service: AuthService, make_user) -> None:
    superadmin = make_user(email='root@buneko.com', role=UserRole.superadmin)
    admin = make_user(email='admin@buneko.com', role=UserRole.admin)

    assert auth_service.set_active(superadmin, admin.id, False)['is_active'] is False


def test_set_active_unknown_user(auth_service: AuthService, make_user) -> None:
    admin = make_user(email='admin@buneko.com', role=UserRole.admin)

    with pytest.raises(UserNotFoundError):
        auth_service.set_active(admin, 999, False)


def test_update_profile_changes_contact_details(auth_service: AuthService, make_user, store) -> None:
    user = make_user(email='a@x.com', name='Anna')
    before = user.updated_at

    view = auth_service.update_profile(
        user, name='Anna Rose', email='anna@buneko.com', phone='+62 812-3456', address='Jl. Mawar 7'
    )

    assert view['name'] == 'Anna Rose'
    assert view['email'] == 'anna@buneko.com'
    assert view['phone'] == '+62 812-3456'
    assert view['address'] == 'Jl. Mawar 7'
    assert 'password' not in view

    stored = store.find_by_email('anna@buneko.com')
    assert stored.id == user.id
    assert stored.updated_at >= before
    assert store.find_by_email('a@x.com') is None


def test_update_profile_leaves_omitted_fields_alone(auth_service: AuthService, make_user) -> None:
    user = make_user(email='a@x.com', name='Anna')
    auth_service.update_profile(user, phone='0812')

    view = auth_service.update_profile(user, address='Jl. Melati 3')

    assert view['name'] == 'Anna'
    assert view['email'] == 'a@x.com'
    assert view['phone'] == '0812'
    assert view['address'] == 'Jl. Melati 3'


def test_update_profile_keeping_own_email_is_allowed(auth_service: AuthService, make_user) -> None:
    user = make_user(email='a@x.com')

    assert auth_service.update_profile(user, email='a@x.com', name='Anna')['email'] == 'a@x.com'


def test_update_profile_email_of_another_user_conflicts(auth_service: AuthService, make_user, db_session) -> None:
    make_user(email='taken@x.com')
    user = make_user(email='a@x.com')

    with pytest.raises(ConflictError) as exception_info:
        auth_service.update_profile(user, email='taken@x.com')

    assert exception_info.value.message == EMAIL_TAKEN_MESSAGE
    db_session.refresh(user)
    assert user.email == 'a@x.com'


def test_update_profile_race_on_email_is_still_a_conflict(
    auth_service: AuthService,
    make_user,
    store,
    db_session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_user(email='taken@x.com')
    user = make_user(email='a@x.com')
    monkeypatch.setattr(store, 'find_by_email', lambda email: None)

    with pytest.raises(ConflictError) as exception_info:
        auth_service.update_profile(user, email='taken@x.com')

    assert exception_info.value.message == EMAIL_TAKEN_MESSAGE
    assert db_session.query(User).filter(User.email == 'taken@x.com').count() == 1
