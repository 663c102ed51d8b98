import threading
from datetime import date
from types import SimpleNamespace

import pytest
from django.db import connection
from rest_framework.exceptions import PermissionDenied, ValidationError

from core.exceptions import CapacityExceeded
from core.models import Attendance, Complaint, Room
from core.principal import AdminPrincipal, ResidentPrincipal, WardenPrincipal, principal_for_user
from core.services import guards, scopes
from core.services.rooms import allocate_room
from .factories import make_campus, make_user

ADMIN = AdminPrincipal(id=1, email='a@test.io')
WARDEN_A = WardenPrincipal(id=2, email='w@test.io', hostel_id=10)
WARDEN_LOOSE = WardenPrincipal(id=3, email='w2@test.io', hostel_id=None)
RESIDENT_A = ResidentPrincipal(id=4, email='r@test.io', hostel_id=10)


# ---------------------------------------------------------------------
# Guards (no database)
# ---------------------------------------------------------------------
def test_only_admin_passes_ensure_admin():
    guards.ensure_admin(ADMIN)
    for p in (WARDEN_A, RESIDENT_A):
        with pytest.raises(PermissionDenied):
            guards.ensure_admin(p)


def test_room_creation_guard():
    own = SimpleNamespace(warden_id=WARDEN_A.id)
    other = SimpleNamespace(warden_id=99)
    guards.ensure_can_create_room(ADMIN, other)
    guards.ensure_can_create_room(WARDEN_A, own)
    with pytest.raises(PermissionDenied):
        guards.ensure_can_create_room(WARDEN_A, other)
    with pytest.raises(PermissionDenied):
        guards.ensure_can_create_room(RESIDENT_A, own)


def test_allocation_guard():
    room = SimpleNamespace(hostel_id=10)
    foreign_room = SimpleNamespace(hostel_id=11)
    guards.ensure_can_allocate(WARDEN_A, room, SimpleNamespace(hostel_id=None))
    guards.ensure_can_allocate(WARDEN_A, room, SimpleNamespace(hostel_id=10))
    guards.ensure_can_allocate(ADMIN, foreign_room, SimpleNamespace(hostel_id=10))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_allocate(WARDEN_A, foreign_room, SimpleNamespace(hostel_id=None))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_allocate(WARDEN_A, room, SimpleNamespace(hostel_id=11))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_allocate(WARDEN_LOOSE, SimpleNamespace(hostel_id=None), SimpleNamespace(hostel_id=None))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_allocate(RESIDENT_A, room, SimpleNamespace(hostel_id=10))


def test_room_space_guard():
    room = SimpleNamespace(capacity=2)
    guards.ensure_room_has_space(room, [5], 6)
    guards.ensure_room_has_space(room, [5, 6], 6)
    with pytest.raises(CapacityExceeded):
        guards.ensure_room_has_space(room, [5, 6], 7)


def test_attendance_guard():
    guards.ensure_can_mark_attendance(ADMIN, SimpleNamespace(hostel_id=None))
    guards.ensure_can_mark_attendance(WARDEN_A, SimpleNamespace(hostel_id=10))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_mark_attendance(WARDEN_A, SimpleNamespace(hostel_id=11))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_mark_attendance(WARDEN_LOOSE, SimpleNamespace(hostel_id=None))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_mark_attendance(RESIDENT_A, SimpleNamespace(hostel_id=10))


def test_complaint_guards():
    guards.ensure_can_file_complaint(RESIDENT_A)
    with pytest.raises(PermissionDenied):
        guards.ensure_can_file_complaint(WARDEN_A)

    own = SimpleNamespace(author=SimpleNamespace(hostel_id=10))
    foreign = SimpleNamespace(author=SimpleNamespace(hostel_id=11))
    guards.ensure_can_update_complaint(ADMIN, foreign)
    guards.ensure_can_update_complaint(WARDEN_A, own)
    with pytest.raises(PermissionDenied):
        guards.ensure_can_update_complaint(WARDEN_A, foreign)
    with pytest.raises(PermissionDenied):
        guards.ensure_can_update_complaint(RESIDENT_A, own)


@pytest.mark.parametrize('current,new', [
    ('pending', 'in-progress'),
    ('pending', 'resolved'),
    ('in-progress', 'resolved'),
    ('in-progress', 'in-progress'),
    ('resolved', 'resolved'),
])
def test_allowed_complaint_transitions(current, new):
    guards.ensure_complaint_transition(current, new)


@pytest.mark.parametrize('current,new', [
    ('resolved', 'pending'),
    ('resolved', 'in-progress'),
    ('in-progress', 'pending'),
])
def test_rejected_complaint_transitions(current, new):
    with pytest.raises(ValidationError):
        guards.ensure_complaint_transition(current, new)


def test_user_update_guard():
    target = SimpleNamespace(hostel_id=10)
    guards.ensure_can_update_user(ADMIN, target, ['name', 'role', 'hostelId', 'roomId'])
    guards.ensure_can_update_user(WARDEN_A, target, ['roomId'], SimpleNamespace(hostel_id=10))
    guards.ensure_can_update_user(WARDEN_A, target, ['roomId'], None)
    with pytest.raises(PermissionDenied, match='Wardens may not change: hostelId, name'):
        guards.ensure_can_update_user(WARDEN_A, target, ['roomId', 'name', 'hostelId'])
    with pytest.raises(PermissionDenied, match='Room not allowed'):
        guards.ensure_can_update_user(WARDEN_A, target, ['roomId'], SimpleNamespace(hostel_id=11))
    with pytest.raises(PermissionDenied):
        guards.ensure_can_update_user(WARDEN_A, SimpleNamespace(hostel_id=11), ['roomId'])
    with pytest.raises(PermissionDenied):
        guards.ensure_can_update_user(RESIDENT_A, target, ['name'])


# ---------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------
def _ids(qs):
    return set(qs.values_list('id', flat=True))


@pytest.fixture
def principals(campus):
    return {k: principal_for_user(campus[k]) for k in ('admin', 'w1', 'w2', 'r1', 'r2', 'r3')}


def test_hostel_scope(campus, principals, django_user_model):
    assert _ids(scopes.hostels_for(principals['admin'])) == {campus['h1'].id, campus['h2'].id}
    assert _ids(scopes.hostels_for(principals['w2'])) == {campus['h2'].id}
    assert _ids(scopes.hostels_for(principals['r1'])) == {campus['h1'].id}
    homeless = django_user_model.objects.create_user(email='nobody@test.io', password='x', role='resident')
    assert not scopes.hostels_for(principal_for_user(homeless)).exists()


def test_room_scope_filters_narrow_only(campus, principals):
    extra = Room.objects.create(hostel=campus['h2'], number='202', capacity=2)
    assert _ids(scopes.rooms_for(principals['admin'])) == {campus['room1'].id, campus['room2'].id, extra.id}
    assert _ids(scopes.rooms_for(principals['admin'], hostel_id=campus['h2'].id)) == {campus['room2'].id, extra.id}
    assert _ids(scopes.rooms_for(principals['w1'])) == {campus['room1'].id}
    assert _ids(scopes.rooms_for(principals['w1'], hostel_id=campus['h2'].id)) == set()
    assert _ids(scopes.rooms_for(principals['r3'])) == {campus['room2'].id, extra.id}


def test_user_scope(campus, principals):
    assert scopes.users_for(principals['admin']).count() == 6
    assert _ids(scopes.users_for(principals['w2'])) == {campus['w2'].id, campus['r3'].id}
    with pytest.raises(PermissionDenied):
        scopes.users_for(principals['r1'])


def test_unaffiliated_staff_sees_nothing(campus, django_user_model):
    # unaffiliated residents exist; a warden without a hostel must not see them
    django_user_model.objects.create_user(email='drifter@test.io', password='x', role='resident')
    loose = django_user_model.objects.create_user(email='w3@test.io', password='x', role='warden')
    p = principal_for_user(loose)
    assert p.hostel_id is None
    assert not scopes.users_for(p).exists()
    assert not scopes.rooms_for(p).exists()
    assert not scopes.attendance_for(p).exists()
    assert not scopes.complaints_for(p).exists()


def test_attendance_scope(campus, principals):
    a1 = Attendance.objects.create(resident=campus['r1'], date=date(2024, 1, 1), status='present')
    a2 = Attendance.objects.create(resident=campus['r2'], date=date(2024, 1, 2), status='absent')
    a3 = Attendance.objects.create(resident=campus['r3'], date=date(2024, 1, 3), status='present')
    assert _ids(scopes.attendance_for(principals['admin'])) == {a1.id, a2.id, a3.id}
    assert _ids(scopes.attendance_for(principals['admin'], resident_id=campus['r3'].id)) == {a3.id}
    assert _ids(scopes.attendance_for(principals['admin'], start=date(2024, 1, 2))) == {a2.id, a3.id}
    assert _ids(scopes.attendance_for(principals['admin'], end=date(2024, 1, 1))) == {a1.id}
    assert _ids(scopes.attendance_for(principals['w1'])) == {a1.id, a2.id}
    assert _ids(scopes.attendance_for(principals['w1'], resident_id=campus['r3'].id)) == set()
    assert _ids(scopes.attendance_for(principals['r2'])) == {a2.id}


def test_complaint_scope(campus, principals):
    c1 = Complaint.objects.create(author=campus['r1'], hostel=campus['h1'], title='a', description='a')
    c3 = Complaint.objects.create(author=campus['r3'], hostel=campus['h2'], title='b', description='b')
    assert _ids(scopes.complaints_for(principals['admin'])) == {c1.id, c3.id}
    assert _ids(scopes.complaints_for(principals['w2'])) == {c3.id}
    assert _ids(scopes.complaints_for(principals['r1'])) == {c1.id}
    assert _ids(scopes.complaints_for(principals['r2'])) == set()


def test_unknown_principal_is_forbidden(db):
    stranger = SimpleNamespace(id=9, role='janitor', hostel_id=None)
    for scope in (scopes.hostels_for, scopes.rooms_for, scopes.users_for,
                  scopes.attendance_for, scopes.complaints_for):
        with pytest.raises(PermissionDenied):
            scope(stranger)


# ---------------------------------------------------------------------
# Allocation service
# ---------------------------------------------------------------------
def test_allocate_rejects_non_resident(campus, principals):
    with pytest.raises(ValidationError):
        allocate_room(principals['admin'], room_id=campus['room1'].id, resident_id=campus['w1'].id)


def test_allocate_moves_resident_between_rooms(campus, principals):
    target = Room.objects.create(hostel=campus['h2'], number='203', capacity=1)
    allocate_room(principals['admin'], room_id=target.id, resident_id=campus['r1'].id)
    campus['r1'].refresh_from_db()
    assert campus['r1'].room_id == target.id
    assert campus['r1'].hostel_id == campus['h2'].id
    assert campus['room1'].occupants.count() == 0


def test_room_occupant_guard():
    guards.ensure_room_occupant('resident')
    for role in ('warden', 'admin'):
        with pytest.raises(ValidationError):
            guards.ensure_room_occupant(role)


@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(not connection.features.has_select_for_update,
                    reason='database backend has no row locks')
def test_concurrent_allocation_to_last_bed():
    campus = make_campus()
    admin = principal_for_user(campus['admin'])
    room = Room.objects.create(hostel=campus['h1'], number='109', capacity=1)
    contenders = [campus['r2'].id, make_user('r5@test.io', hostel=campus['h1']).id]
    barrier = threading.Barrier(len(contenders))
    outcomes = []

    def attempt(resident_id):
        try:
            barrier.wait()
            allocate_room(admin, room_id=room.id, resident_id=resident_id)
            outcomes.append('allocated')
        except CapacityExceeded:
            outcomes.append('full')
        finally:
            connection.close()

    threads = [threading.Thread(target=attempt, args=(rid,)) for rid in contenders]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ['allocated', 'full']
    assert room.occupants.count() == 1
