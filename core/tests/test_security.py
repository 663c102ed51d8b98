from datetime import timedelta

import pytest
from django.test import override_settings
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from core.models import AuditEvent, User
from core.principal import (
    AdminPrincipal,
    ResidentPrincipal,
    WardenPrincipal,
    resolve_principal,
)
from .factories import PASSWORD, make_user

pytestmark = pytest.mark.django_db


def bearer(token) -> str:
    return f'Bearer {token}'


def login(client, email, password=PASSWORD, **extra):
    return client.post(reverse('login_view'), {'email': email, 'password': password, **extra}, format='json')


# ---------------------------------------------------------------------
# Principal resolution
# ---------------------------------------------------------------------
def test_resolver_without_header():
    assert resolve_principal(None) is None
    assert resolve_principal('') is None


def test_resolver_rejects_garbage():
    assert resolve_principal('Bearer not-a-token') is None
    assert resolve_principal('Token abc') is None
    assert resolve_principal('Bearer') is None


def test_resolver_rejects_expired_token():
    user = make_user('late@test.io')
    token = AccessToken.for_user(user)
    token.set_exp(lifetime=-timedelta(seconds=1))
    assert resolve_principal(bearer(token)) is None


def test_resolver_rejects_refresh_token_as_bearer():
    user = make_user('refresh@test.io')
    assert resolve_principal(bearer(RefreshToken.for_user(user))) is None


def test_resolver_rejects_deleted_or_inactive_user():
    user = make_user('gone@test.io')
    token = str(AccessToken.for_user(user))
    user.is_active = False
    user.save()
    assert resolve_principal(bearer(token)) is None
    user.delete()
    assert resolve_principal(bearer(token)) is None


def test_resolver_builds_variant_per_role(campus):
    admin = resolve_principal(bearer(AccessToken.for_user(campus['admin'])))
    assert isinstance(admin, AdminPrincipal)
    assert admin.role.value == 'admin'

    warden = resolve_principal(bearer(AccessToken.for_user(campus['w1'])))
    assert isinstance(warden, WardenPrincipal)
    assert warden.hostel_id == campus['h1'].id

    resident = resolve_principal(bearer(AccessToken.for_user(campus['r3'])))
    assert resident == ResidentPrincipal(id=campus['r3'].id, email='r3@test.io', hostel_id=campus['h2'].id)


def test_warden_affiliation_falls_back_to_run_hostel(campus):
    w1 = campus['w1']
    w1.hostel = None
    w1.save()
    warden = resolve_principal(bearer(AccessToken.for_user(w1)))
    assert warden.hostel_id == campus['h1'].id


def test_role_read_from_database_not_token(campus):
    r1 = campus['r1']
    token = AccessToken.for_user(r1)
    token['role'] = 'admin'
    assert isinstance(resolve_principal(bearer(token)), ResidentPrincipal)


def test_unknown_role_is_forbidden(api_client):
    odd = make_user('odd@test.io')
    User.objects.filter(id=odd.id).update(role='janitor')
    api_client.credentials(HTTP_AUTHORIZATION=bearer(AccessToken.for_user(odd)))
    resp = api_client.get('/hostels')
    assert resp.status_code == 403
    assert resp.data['error']['message'] == 'Unknown role'


# ---------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------
def test_anonymous_request_gets_401_envelope(api_client):
    resp = api_client.get('/hostels')
    assert resp.status_code == 401
    assert resp.data['ok'] is False
    assert resp.data['error']['code'] == 'unauthenticated'


def test_invalid_token_is_treated_as_anonymous(api_client):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer broken')
    assert api_client.get('/rooms').status_code == 401
    # public endpoints still work with a broken header
    assert api_client.get('/ping').json() == {'message': 'pong'}


def test_healthz(api_client):
    resp = api_client.get('/healthz')
    assert resp.status_code == 200
    assert resp.json() == {'ok': True, 'db': True}


# ---------------------------------------------------------------------
# Login / register / tokens
# ---------------------------------------------------------------------
def test_login_returns_tokens_and_ignores_role(api_client):
    u = make_user('student@test.io')
    resp = login(api_client, 'student@test.io', role='admin')
    assert resp.status_code == 200
    assert resp.data['token'] and resp.data['refresh']
    assert resp.data['user']['role'] == 'resident'
    assert 'password' not in resp.data['user']
    u.refresh_from_db()
    assert u.role == 'resident'

    access = AccessToken(resp.data['token'])
    assert access['role'] == 'resident'
    assert access['email'] == 'student@test.io'
    assert str(access['id']) == str(u.id)


def test_login_bad_credentials(api_client):
    make_user('student@test.io')
    resp = login(api_client, 'student@test.io', password='wrong-password')
    assert resp.status_code == 401
    assert resp.data['error']['code'] == 'unauthenticated'
    resp = login(api_client, 'nobody@test.io')
    assert resp.status_code == 401
    assert AuditEvent.objects.filter(action='login', detail__result='fail').count() == 2


def test_me_with_login_token(api_client):
    make_user('me@test.io', name='Me Myself')
    token = login(api_client, 'me@test.io').data['token']
    api_client.credentials(HTTP_AUTHORIZATION=bearer(token))
    resp = api_client.get(reverse('me_view'))
    assert resp.status_code == 200
    assert resp.data['user']['email'] == 'me@test.io'
    assert resp.data['user']['name'] == 'Me Myself'


def test_register_forces_resident_role_for_anonymous(api_client):
    resp = api_client.post(reverse('register_view'), {
        'name': 'Sneaky', 'email': 'sneaky@test.io', 'password': PASSWORD, 'role': 'admin',
    }, format='json')
    assert resp.status_code == 200
    assert resp.data['token']
    assert User.objects.get(email='sneaky@test.io').role == 'resident'


def test_admin_may_register_staff(api_client, campus):
    api_client.credentials(HTTP_AUTHORIZATION=bearer(AccessToken.for_user(campus['admin'])))
    resp = api_client.post(reverse('register_view'), {
        'name': 'New Warden', 'email': 'nw@test.io', 'password': PASSWORD, 'role': 'warden',
    }, format='json')
    assert resp.status_code == 200
    assert User.objects.get(email='nw@test.io').role == 'warden'


def test_register_duplicate_and_weak_password(api_client):
    make_user('dup@test.io')
    resp = api_client.post(reverse('register_view'), {
        'name': 'Dup', 'email': 'dup@test.io', 'password': PASSWORD,
    }, format='json')
    assert resp.status_code == 409
    assert resp.data['error']['code'] == 'conflict'

    resp = api_client.post(reverse('register_view'), {
        'name': 'Weak', 'email': 'weak@test.io', 'password': '123',
    }, format='json')
    assert resp.status_code == 400
    assert not User.objects.filter(email='weak@test.io').exists()


def test_refresh_and_logout_blacklist(api_client):
    make_user('cycle@test.io')
    tokens = login(api_client, 'cycle@test.io').data
    resp = api_client.post(reverse('jwt_refresh_view'), {'refresh': tokens['refresh']}, format='json')
    assert resp.status_code == 200
    assert resp.data['token']

    api_client.credentials(HTTP_AUTHORIZATION=bearer(tokens['token']))
    resp = api_client.post(reverse('jwt_logout_view'), {'refresh': tokens['refresh']}, format='json')
    assert resp.status_code == 200
    assert resp.data['blacklisted'] == 1

    api_client.credentials()
    resp = api_client.post(reverse('jwt_refresh_view'), {'refresh': tokens['refresh']}, format='json')
    assert resp.status_code == 401


def test_logout_rejects_foreign_refresh_token(api_client):
    me = make_user('me@test.io')
    other = make_user('other@test.io')
    api_client.credentials(HTTP_AUTHORIZATION=bearer(AccessToken.for_user(me)))
    resp = api_client.post(reverse('jwt_logout_view'), {'refresh': str(RefreshToken.for_user(other))},
                           format='json')
    assert resp.status_code == 403


def test_logout_all_tokens(api_client):
    make_user('many@test.io')
    first = login(api_client, 'many@test.io').data
    login(api_client, 'many@test.io')
    api_client.credentials(HTTP_AUTHORIZATION=bearer(first['token']))
    resp = api_client.post(reverse('jwt_logout_view'), {}, format='json')
    assert resp.status_code == 200
    assert resp.data['blacklisted'] == 2


# ---------------------------------------------------------------------
# Demo seeding
# ---------------------------------------------------------------------
@override_settings(DEMO_SEED_ENABLE=False)
def test_seed_endpoint_disabled(api_client):
    resp = api_client.post(reverse('seed_demo_users_view'))
    assert resp.status_code == 501
    assert resp.data['error']['code'] == 'not_implemented'
    assert not User.objects.exists()


@override_settings(DEMO_SEED_ENABLE=True, DEMO_PASSWORD='demo-pass-1')
def test_seed_endpoint_is_idempotent(api_client):
    resp = api_client.post(reverse('seed_demo_users_view'))
    assert resp.status_code == 200
    assert {u['email'] for u in resp.data['users']} == {
        'admin@hostel.com', 'warden@hostel.com', 'student@hostel.com',
    }
    again = api_client.post(reverse('seed_demo_users_view'))
    assert again.data['users'] == []
    assert User.objects.count() == 3
    assert login(api_client, 'warden@hostel.com', password='demo-pass-1').status_code == 200


def test_seed_command(capsys):
    from django.core.management import call_command
    call_command('seed_demo_users', password='cmd-pass-1')
    call_command('seed_demo_users')
    assert User.objects.filter(email__endswith='@hostel.com').count() == 3
    assert User.objects.get(email='admin@hostel.com').check_password('cmd-pass-1')
    assert 'exists: admin@hostel.com (admin)' in capsys.readouterr().out
